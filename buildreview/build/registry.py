"""Registry of the tools a BuildContext exposes.

Tools come from two sets: the built-in tools and the user's custom tools.
Each is reachable under the identifier its class declares in ``name``.
"""

import importlib
from collections.abc import Iterable, Iterator

from buildreview.core.exceptions.errors import ValidationError
from buildreview.tools.base import BaseTool

ToolSpec = type[BaseTool] | str


def load_tool_class(spec: ToolSpec) -> type[BaseTool]:
    """Resolve a tool class, or a ``"package.module:ClassName"`` import string.

    Raises:
        ValidationError: If the class cannot be imported or is not a tool.
    """
    if isinstance(spec, str):
        module_name, _, class_name = spec.partition(":")
        if not module_name or not class_name:
            raise ValidationError(
                f"Tool {spec!r} must be given as 'package.module:ClassName'",
                field="custom_tools",
            )
        try:
            tool_class = getattr(importlib.import_module(module_name), class_name)
        except (ImportError, AttributeError) as e:
            raise ValidationError(f"Cannot load tool {spec}: {e}", field="custom_tools") from e
    else:
        tool_class = spec

    if not (isinstance(tool_class, type) and issubclass(tool_class, BaseTool)):
        raise ValidationError(f"{spec!r} is not a BaseTool subclass", field="custom_tools")
    return tool_class


class ToolRegistry:
    """Identifier to tool class table, checked for collisions when built."""

    def __init__(
        self,
        builtin: Iterable[ToolSpec] = (),
        custom: Iterable[ToolSpec] = (),
        reserved: Iterable[str] = (),
    ) -> None:
        """
        Args:
            builtin: Built-in tool classes.
            custom: User tool classes or import strings.
            reserved: Names no tool may take (the BuildContext's own attributes).

        Raises:
            ValidationError: If an identifier is reserved or declared twice.
        """
        self._reserved = frozenset(reserved)
        self._tools: dict[str, type[BaseTool]] = {}
        for spec in builtin:
            self.register(load_tool_class(spec))
        for spec in custom:
            self.register(load_tool_class(spec))

    def register(self, tool_class: type[BaseTool]) -> None:
        """Add a tool class under its declared name."""
        identifier = tool_class.name
        if not identifier.isidentifier() or identifier in self._reserved:
            raise ValidationError(
                f"You cannot have a tool named {identifier}",
                field=identifier,
            )
        if identifier in self._tools:
            raise ValidationError(
                f"You cannot have two tools named {identifier}",
                field=identifier,
                details={
                    "existing": self._tools[identifier].__qualname__,
                    "new": tool_class.__qualname__,
                },
            )
        self._tools[identifier] = tool_class

    def get(self, identifier: str) -> type[BaseTool] | None:
        return self._tools.get(identifier)

    def list_tools(self) -> list[str]:
        """List all registered tool identifiers."""
        return list(self._tools)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._tools

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)
