from typing import Any, Dict

from pydantic import BaseModel, Field


class ToolCallRequest(BaseModel):
    """Body of ``POST /api/tools/<name>``.

    Either the arguments object itself, or ``{"arguments": {...}}``.
    """
    arguments: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_body(cls, raw: Dict[str, Any]) -> 'ToolCallRequest':
        if 'arguments' in raw:
            return cls(**raw)
        return cls(arguments=raw)
