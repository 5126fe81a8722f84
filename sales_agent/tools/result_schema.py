from __future__ import annotations

from typing import Any


def make_tool_result(
    *,
    kind: str,
    text: str,
    success: bool,
    error: str | None = None,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a normalized tool result envelope.

    ``text`` is what the model sees as the tool result. ``data`` carries
    structured values for logging and tests and is never sent to the model.
    """
    return {
        "kind": kind,
        "text": text,
        "success": bool(success),
        "error": error if not success else None,
        "data": data or {},
    }


def make_tool_success(
    *,
    kind: str,
    text: str,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return make_tool_result(kind=kind, text=text, success=True, data=data)


def make_tool_error(
    *,
    kind: str,
    error: str,
    text: str | None = None,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    rendered = text if text is not None else f"Error: {error}"
    return make_tool_result(
        kind=kind,
        text=rendered,
        success=False,
        error=error,
        data=data,
    )


def result_text(result: Any) -> str:
    """Extract the model-facing text from a handler return value."""
    if isinstance(result, dict):
        return str(result.get("text", ""))
    return str(result)
