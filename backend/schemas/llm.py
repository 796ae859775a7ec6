"""Model reply schema: the JSON contract the classification model must honour.

Replies that fail validation are never coerced into a guessed intent.
Entity values stay loose here; intent.entities applies tolerant parsing.
"""
import json
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.exceptions import InvalidModelResponseError
from intent.models import IntentType

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class ModelReply(BaseModel):
    model_config = ConfigDict(extra="ignore")

    intent_type: IntentType
    confidence: float = Field(ge=0.0, le=1.0)
    entities: Dict[str, Any] = Field(default_factory=dict)
    user_goal: Optional[str] = None

    @field_validator("intent_type", mode="before")
    @classmethod
    def _canonical_intent(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("confidence", mode="before")
    @classmethod
    def _numeric_confidence(cls, v):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("confidence must be a number")
        return v

    @field_validator("entities", mode="before")
    @classmethod
    def _entities_object(cls, v):
        return {} if v is None else v

    @field_validator("user_goal", mode="before")
    @classmethod
    def _blank_goal(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw.strip()).strip()


def parse_model_reply(raw: str) -> ModelReply:
    """Parse raw model text into a ModelReply or raise InvalidModelResponseError."""
    if not raw or not raw.strip():
        raise InvalidModelResponseError("Empty model response")
    try:
        payload = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise InvalidModelResponseError(f"Model response is not JSON: {e.msg}") from e
    if not isinstance(payload, dict):
        raise InvalidModelResponseError("Model response must be a JSON object")
    try:
        return ModelReply.model_validate(payload)
    except ValidationError as e:
        fields = ",".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise InvalidModelResponseError(f"Model response failed validation: {fields}") from e
