"""
Build tools

Platform specific tools build scripts drive through the BuildContext.
"""

from buildreview.tools.android import AndroidTool
from buildreview.tools.base import BaseTool
from buildreview.tools.xcode import XcodeTool

BUILTIN_TOOLS: tuple[type[BaseTool], ...] = (XcodeTool, AndroidTool)

__all__ = [
    "BaseTool",
    "BUILTIN_TOOLS",
    "XcodeTool",
    "AndroidTool",
]
