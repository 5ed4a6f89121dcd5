"""Tool registry built on Pydantic v2 models.

Each tool declares its parameters explicitly as `ToolParameter` data; the
agent-visible schema is derived from that list, never from reflection on the
handler signature.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timezone
from enum import Enum
from time import perf_counter
from typing import Any, Optional

from langchain_core.tools import StructuredTool
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    create_model,
    model_validator,
)

from doc_agent.types import ToolResult, ToolTrace


class ParameterType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATETIME = "datetime"


_PYTHON_TYPES: dict[ParameterType, type] = {
    ParameterType.STRING: str,
    ParameterType.INTEGER: int,
    ParameterType.NUMBER: float,
    ParameterType.BOOLEAN: bool,
    ParameterType.DATETIME: datetime,
}

_TRUE = {"true", "yes", "1", "y", "on"}
_FALSE = {"false", "no", "0", "n", "off"}


def _to_string(value: Any) -> str | None:
    text = str(value).strip()
    return text or None


def _to_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("booleans are not integers")
    if isinstance(value, str):
        value = float(value.strip())
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("non-finite number")
    return int(value)


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    number = float(value.strip() if isinstance(value, str) else value)
    if not math.isfinite(number):
        raise ValueError("non-finite number")
    return number


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


_COERCERS: dict[ParameterType, Callable[[Any], Any]] = {
    ParameterType.STRING: _to_string,
    ParameterType.INTEGER: _to_integer,
    ParameterType.NUMBER: _to_number,
    ParameterType.BOOLEAN: _to_boolean,
    ParameterType.DATETIME: _to_datetime,
}


def _format_bound(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class ToolParameter(BaseModel):
    """One declared tool parameter, with its default and valid range/choices."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ParameterType
    description: str
    default: Any = None
    minimum: float | None = None
    maximum: float | None = None
    choices: tuple[str, ...] = ()
    required: bool = False

    @property
    def agent_description(self) -> str:
        """Description text including every constraint `coerce` enforces."""

        notes: list[str] = []
        if self.required:
            notes.append("required")
        if self.choices:
            notes.append("one of: " + ", ".join(f"'{choice}'" for choice in self.choices))
        if self.minimum is not None and self.maximum is not None:
            notes.append(f"range: {_format_bound(self.minimum)}-{_format_bound(self.maximum)}")
        elif self.minimum is not None:
            notes.append(f"minimum: {_format_bound(self.minimum)}")
        elif self.maximum is not None:
            notes.append(f"maximum: {_format_bound(self.maximum)}")
        if self.default is not None:
            default = self.default
            if isinstance(default, bool):
                default = str(default).lower()
            notes.append(f"default: {default}")
        if not notes:
            return self.description
        return f"{self.description} ({'; '.join(notes)})"

    def coerce(self, value: Any) -> Any:
        """Correct an agent-supplied value; never raises.

        Unparseable input and unknown choices fall back to the default;
        numbers are clamped into the declared range.
        """

        if value is None:
            return self.default
        try:
            coerced = _COERCERS[self.type](value)
        except (TypeError, ValueError, OverflowError):
            return self.default
        if coerced is None:
            return self.default

        if self.choices:
            canonical = {choice.lower(): choice for choice in self.choices}
            return canonical.get(str(coerced).lower(), self.default)

        if self.type in (ParameterType.INTEGER, ParameterType.NUMBER):
            if self.minimum is not None:
                coerced = max(coerced, type(coerced)(self.minimum))
            if self.maximum is not None:
                coerced = min(coerced, type(coerced)(self.maximum))
        return coerced


ToolHandler = Callable[[Any, Optional[asyncio.Event]], Awaitable[ToolResult]]


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and invocation."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    description: str
    parameters: tuple[ToolParameter, ...] = ()
    handler: ToolHandler
    tags: tuple[str, ...] = Field(default_factory=tuple)

    _args_schema: type[BaseModel] = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        names = [parameter.name for parameter in self.parameters]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate parameter names in tool {self.name}")
        fields: dict[str, Any] = {
            parameter.name: (
                Optional[_PYTHON_TYPES[parameter.type]],
                Field(default=parameter.default, description=parameter.agent_description),
            )
            for parameter in self.parameters
        }
        spec = self

        def _coerce_arguments(cls: type[BaseModel], data: Any) -> Any:
            return spec.coerce(data) if isinstance(data, dict) else data

        model_name = "".join(part.title() for part in self.name.split("_")) + "Arguments"
        self._args_schema = create_model(
            model_name,
            __validators__={
                "coerce_arguments": model_validator(mode="before")(classmethod(_coerce_arguments))
            },
            **fields,
        )

    @property
    def args_schema(self) -> type[BaseModel]:
        return self._args_schema

    def coerce(self, payload: dict[str, Any]) -> dict[str, Any]:
        return {p.name: p.coerce(payload.get(p.name)) for p in self.parameters}

    async def invoke(
        self,
        payload: dict[str, Any],
        cancel: asyncio.Event | None = None,
    ) -> ToolResult:
        data = self.args_schema.model_validate(payload)
        return await self.handler(data, cancel)


def _validation_advisory(error: ValidationError) -> str:
    fields = sorted({str(item["loc"][0]) for item in error.errors() if item.get("loc")})
    return (
        "Some tool arguments had an unexpected format"
        + (f" ({', '.join(fields)})" if fields else "")
        + ". Retry with values matching the parameter descriptions."
    )


class ToolRegistry:
    """Stores tool specs and exports LangChain-compatible tool objects.

    Once sealed, the catalog is fixed for the lifetime of the process.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._observer: Callable[[ToolTrace], None] | None = None
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def register(self, spec: ToolSpec) -> None:
        if self._sealed:
            raise RuntimeError(f"Registry is sealed; cannot register {spec.name}")
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def seal(self) -> None:
        self._sealed = True

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    async def execute(
        self,
        name: str,
        payload: dict[str, Any],
        *,
        cancel: asyncio.Event | None = None,
    ) -> str:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")
        return await self._execute_spec(spec, payload, cancel)

    def as_langchain_tools(self) -> list[StructuredTool]:
        tools: list[StructuredTool] = []
        for spec in self._tools.values():
            tools.append(
                StructuredTool.from_function(
                    coroutine=self._build_coroutine(spec),
                    name=spec.name,
                    description=spec.description,
                    args_schema=spec.args_schema,
                    handle_validation_error=_validation_advisory,
                )
            )
        return tools

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def _build_coroutine(self, spec: ToolSpec) -> Callable[..., Awaitable[str]]:
        async def _coroutine(**kwargs: Any) -> str:
            return await self._execute_spec(spec, kwargs, None)

        return _coroutine

    async def _execute_spec(
        self,
        spec: ToolSpec,
        payload: dict[str, Any],
        cancel: asyncio.Event | None,
    ) -> str:
        start = perf_counter()
        output = (await spec.invoke(payload, cancel)).render()
        latency_ms = (perf_counter() - start) * 1000.0

        if self._observer is not None:
            self._observer(
                ToolTrace(
                    name=spec.name,
                    input_payload=payload,
                    output_preview=output[:320],
                    latency_ms=latency_ms,
                )
            )
        return output
