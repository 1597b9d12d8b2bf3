"""Build orchestration: build context and tool registry."""

from buildreview.build.context import BuildContext
from buildreview.build.registry import ToolRegistry, load_tool_class

__all__ = ["BuildContext", "ToolRegistry", "load_tool_class"]
