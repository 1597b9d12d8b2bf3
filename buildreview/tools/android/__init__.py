"""Android build tool."""

from buildreview.tools.android.findbugs import parse_findbugs_report
from buildreview.tools.android.tool import AndroidTool

__all__ = ["AndroidTool", "parse_findbugs_report"]
