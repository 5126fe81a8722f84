from __future__ import annotations

from typing import Any

from langchain_core.tools import BaseTool


def _tool_metadata(tool: BaseTool) -> dict[str, Any]:
    meta = getattr(tool, "metadata", None)
    if isinstance(meta, dict):
        return dict(meta)
    return {}


def set_tool_capabilities(
    tool: BaseTool,
    *,
    side_effects: list[str] | tuple[str, ...] = (),
    required_fields: list[str] | tuple[str, ...] = (),
    optional_fields: list[str] | tuple[str, ...] = (),
) -> None:
    meta = _tool_metadata(tool)
    meta["side_effects"] = list(side_effects)
    meta["read_only"] = not side_effects
    meta["required_fields"] = list(required_fields)
    meta["optional_fields"] = list(optional_fields)
    tool.metadata = meta


def tool_side_effects(tool: BaseTool) -> list[str]:
    effects = _tool_metadata(tool).get("side_effects")
    if effects is None:
        effects = getattr(tool, "side_effects", None)
    if isinstance(effects, (list, tuple)):
        return [str(e) for e in effects]
    return []


def tool_is_read_only(tool: BaseTool) -> bool:
    """True when the tool declares no external side effects."""
    return not tool_side_effects(tool)


def annotate_sales_tools(tools: list[BaseTool]) -> None:
    for tool in tools:
        set_tool_capabilities(
            tool,
            side_effects=getattr(tool, "side_effects", ()),
            required_fields=getattr(tool, "required_fields", ()),
            optional_fields=getattr(tool, "optional_fields", ()),
        )
