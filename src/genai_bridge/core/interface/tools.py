"""Tool/Function formatter — tool declarations and tool choice per protocol.

Tools are modelled as a closed set of tagged variants (discriminated by
``kind``):

* ``FunctionTool`` — a canonical function declaration (name, description,
  JSON-Schema parameters).
* ``StandardTool`` — an already-shaped standard-protocol tool, e.g.
  ``{"googleSearch": {}}`` or ``{"functionDeclarations": [...]}``.
* ``InteractionsTool`` — an already-shaped Interactions tool, e.g.
  ``{"type": "google_search"}``.

Raw dicts are classified once by :func:`coerce_tool`; after that every
formatter branch is an exhaustive match over the variants. Entries that fit
no variant are skipped with a warning so one bad tool never aborts a call.
"""

import logging
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


class FunctionTool(BaseModel):
    """A canonical function declaration."""

    kind: Literal["function"] = "function"
    name: str
    description: str = ""
    parameters: dict[str, Any] = {}


class StandardTool(BaseModel):
    """A tool already in standard-protocol shape; passed through unchanged."""

    kind: Literal["standard"] = "standard"
    spec: dict[str, Any]


class InteractionsTool(BaseModel):
    """A tool already in Interactions shape; passed through unchanged."""

    kind: Literal["interactions"] = "interactions"
    spec: dict[str, Any]


ToolSpec = Annotated[FunctionTool | StandardTool | InteractionsTool, Field(discriminator="kind")]
ToolInput = FunctionTool | StandardTool | InteractionsTool | dict[str, Any]
ToolChoice = str | dict[str, Any]

_tool_adapter: TypeAdapter[FunctionTool | StandardTool | InteractionsTool] = TypeAdapter(ToolSpec)

_STANDARD_MARKERS = (
    "functionDeclarations",
    "googleSearch",
    "googleSearchRetrieval",
    "codeExecution",
    "urlContext",
)
_INTERACTIONS_TYPES = frozenset({"function", "google_search", "code_execution", "url_context"})

# Built-in tools known to both protocols: standard key -> Interactions type.
_BUILTIN_TOOLS: dict[str, str] = {
    "googleSearch": "google_search",
    "codeExecution": "code_execution",
    "urlContext": "url_context",
}

_MODES = frozenset({"auto", "any", "none"})


def coerce_tool(tool: Any) -> FunctionTool | StandardTool | InteractionsTool | None:
    """Classify a raw tool entry into one of the tagged variants.

    Returns ``None`` for entries that match no known shape.
    """
    if isinstance(tool, (FunctionTool, StandardTool, InteractionsTool)):
        return tool
    if not isinstance(tool, dict):
        return None

    if "kind" in tool:
        try:
            return _tool_adapter.validate_python(tool)
        except ValidationError:
            return None

    if any(key in tool for key in _STANDARD_MARKERS):
        return StandardTool(spec=tool)

    tool_type = tool.get("type")
    if tool_type == "function" and isinstance(tool.get("function"), dict):
        # OpenAI-style {"type": "function", "function": {...}}
        fn = tool["function"]
        if not fn.get("name"):
            return None
        return FunctionTool(
            name=fn["name"],
            description=fn.get("description") or "",
            parameters=fn.get("parameters") or {},
        )
    if tool_type in _INTERACTIONS_TYPES and (tool_type != "function" or tool.get("name")):
        return InteractionsTool(spec=tool)
    if tool_type is None and isinstance(tool.get("name"), str) and tool["name"]:
        return FunctionTool(
            name=tool["name"],
            description=tool.get("description") or "",
            parameters=tool.get("parameters") or {},
        )
    return None


def _coerce_all(tools: list[Any]) -> list[FunctionTool | StandardTool | InteractionsTool]:
    specs: list[FunctionTool | StandardTool | InteractionsTool] = []
    for tool in tools:
        spec = coerce_tool(tool)
        if spec is None:
            logger.warning("Skipping unrecognized tool entry: %r", tool)
            continue
        specs.append(spec)
    return specs


def _declaration(name: str, description: str | None, parameters: dict[str, Any] | None) -> dict[str, Any]:
    decl: dict[str, Any] = {"name": name}
    if description:
        decl["description"] = description
    if parameters:
        decl["parameters"] = parameters
    return decl


# ---------------------------------------------------------------------------
# Tool lists
# ---------------------------------------------------------------------------


def format_standard_tools(tools: list[Any] | None) -> list[dict[str, Any]] | None:
    """Build the standard-protocol ``tools`` list.

    Pass-through tools come first, followed by a single
    ``{"functionDeclarations": [...]}`` entry collecting every function.
    """
    if not tools:
        return None

    result: list[dict[str, Any]] = []
    declarations: list[dict[str, Any]] = []

    for spec in _coerce_all(tools):
        if isinstance(spec, FunctionTool):
            declarations.append(_declaration(spec.name, spec.description, spec.parameters))
        elif isinstance(spec, StandardTool):
            result.append(dict(spec.spec))
        else:
            tool_type = spec.spec.get("type")
            if tool_type == "function":
                declarations.append(
                    _declaration(
                        spec.spec["name"],
                        spec.spec.get("description"),
                        spec.spec.get("parameters"),
                    )
                )
                continue
            key = next((k for k, v in _BUILTIN_TOOLS.items() if v == tool_type), None)
            if key is None:
                logger.warning("Skipping Interactions tool with no standard counterpart: %r", spec.spec)
                continue
            result.append({key: {}})

    if declarations:
        result.append({"functionDeclarations": declarations})
    return result or None


def format_interactions_tools(tools: list[Any] | None) -> list[dict[str, Any]] | None:
    """Build the Interactions ``tools`` list (one flat ``{"type": ...}`` entry per tool)."""
    if not tools:
        return None

    result: list[dict[str, Any]] = []
    for spec in _coerce_all(tools):
        if isinstance(spec, FunctionTool):
            result.append({"type": "function", **_declaration(spec.name, spec.description, spec.parameters)})
        elif isinstance(spec, InteractionsTool):
            result.append(dict(spec.spec))
        else:
            for func in spec.spec.get("functionDeclarations") or []:
                if not isinstance(func, dict) or not func.get("name"):
                    logger.warning("Skipping function declaration without a name: %r", func)
                    continue
                result.append(
                    {
                        "type": "function",
                        **_declaration(func["name"], func.get("description"), func.get("parameters")),
                    }
                )
            for key, tool_type in _BUILTIN_TOOLS.items():
                if key in spec.spec:
                    result.append({"type": tool_type})
    return result or None


# ---------------------------------------------------------------------------
# Tool choice
# ---------------------------------------------------------------------------


def format_standard_tool_config(
    tool_choice: ToolChoice | None = None,
    tool_config: dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    """Build the standard-protocol ``toolConfig``.

    An explicit *tool_config* wins. A string choice (``auto``/``any``/``none``)
    maps to a ``functionCallingConfig`` mode; shaped dicts pass through.
    """
    if tool_config:
        return dict(tool_config)
    if tool_choice is None:
        return None

    if isinstance(tool_choice, str):
        mode = tool_choice.lower()
        if mode in _MODES:
            return {"functionCallingConfig": {"mode": mode.upper()}}
    elif "functionCallingConfig" in tool_choice:
        return dict(tool_choice)
    elif "mode" in tool_choice:
        return {"functionCallingConfig": dict(tool_choice)}
    elif isinstance(tool_choice.get("allowed_tools"), dict):
        allowed = tool_choice["allowed_tools"]
        mode = str(allowed.get("mode", "")).lower()
        if mode in _MODES:
            config: dict[str, Any] = {"mode": mode.upper()}
            if allowed.get("tools"):
                config["allowedFunctionNames"] = list(allowed["tools"])
            return {"functionCallingConfig": config}

    logger.warning("Ignoring unrecognized tool_choice: %r", tool_choice)
    return None


def format_interactions_tool_choice(
    tool_choice: ToolChoice | None = None,
    tool_config: dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    """Build the Interactions ``generation_config.tool_choice``.

    A string choice maps to ``{"allowed_tools": {"mode": ...}}``; an
    Interactions-shaped dict passes through; a standard ``toolConfig`` (given
    as *tool_choice* or *tool_config*) is translated.
    """
    if isinstance(tool_choice, str):
        mode = tool_choice.lower()
        if mode in _MODES:
            return {"allowed_tools": {"mode": mode}}
        logger.warning("Ignoring unrecognized tool_choice: %r", tool_choice)
        return None

    if isinstance(tool_choice, dict):
        if "functionCallingConfig" in tool_choice or "mode" in tool_choice:
            return _from_function_calling_config(tool_choice.get("functionCallingConfig", tool_choice))
        return dict(tool_choice)

    if tool_config and "functionCallingConfig" in tool_config:
        return _from_function_calling_config(tool_config["functionCallingConfig"])
    return None


def _from_function_calling_config(config: dict[str, Any]) -> dict[str, Any] | None:
    mode = str(config.get("mode", "")).lower()
    if mode not in _MODES:
        logger.warning("Ignoring unsupported function calling mode: %r", config.get("mode"))
        return None
    allowed: dict[str, Any] = {"mode": mode}
    if config.get("allowedFunctionNames"):
        allowed["tools"] = list(config["allowedFunctionNames"])
    return {"allowed_tools": allowed}
