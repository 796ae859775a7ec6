"""HTTP request/response models for the session endpoints."""
from typing import Dict, List, Literal, Optional, assert_never
from pydantic import BaseModel, Field

from gateway.pipeline import TurnOutcome
from intent.models import InputType, IntentType, Lie, MissDirection, Module
from intent.results import Clarify, Confirm, Error, Route

OutcomeKind = Literal["route", "confirm", "clarify", "error", "superseded"]


# ---- Requests ----

class InputRequest(BaseModel):
    text: str = ""
    input_type: InputType = InputType.TEXT


class ConfirmRequest(BaseModel):
    accepted: bool


class SuggestionRequest(BaseModel):
    intent_type: IntentType
    index: int = Field(default=0, ge=0)


class RoundRequest(BaseModel):
    round_id: str
    course_name: str
    starting_hole: int = 1
    par: int = 4


class HoleRequest(BaseModel):
    hole: int
    par: int = 4


class ShotRequest(BaseModel):
    club: str  # free-form: "7i", "seven iron", "PW"
    lie: Lie
    miss_direction: Optional[MissDirection] = None
    under_pressure: bool = False
    notes: Optional[str] = None


# ---- Responses ----

class SuggestionOut(BaseModel):
    intent_type: IntentType
    label: str
    description: str = ""


class TargetOut(BaseModel):
    module: Module
    screen: str
    parameters: Dict[str, str] = Field(default_factory=dict)


class OutcomeResponse(BaseModel):
    kind: OutcomeKind
    assistant_text: str = ""
    intent: Optional[IntentType] = None
    confidence: Optional[float] = None
    navigated_to: Optional[TargetOut] = None
    suggestions: List[SuggestionOut] = Field(default_factory=list)
    error_code: Optional[str] = None
    recoverable: Optional[bool] = None
    recovery_actions: List[str] = Field(default_factory=list)
    suggested_intents: List[IntentType] = Field(default_factory=list)
    disclaimer_type: Optional[str] = None
    pattern_references: int = 0


class ContextResponse(BaseModel):
    summary: str
    follow_up: str
    history_size: int
    has_active_round: bool


def outcome_to_response(outcome: Optional[TurnOutcome]) -> OutcomeResponse:
    if outcome is None:
        return OutcomeResponse(kind="superseded")

    response = OutcomeResponse(kind="error", assistant_text=outcome.assistant_text)
    result = outcome.result
    match result:
        case Route():
            response.kind = "route"
            response.intent = result.intent.intent_type
            response.confidence = result.intent.confidence
        case Confirm():
            response.kind = "confirm"
            response.intent = result.intent.intent_type
            response.confidence = result.intent.confidence
        case Clarify():
            response.kind = "clarify"
            response.suggestions = [
                SuggestionOut(intent_type=s.intent_type, label=s.label, description=s.description)
                for s in result.suggestions
            ]
        case Error():
            response.error_code = result.error_code
            response.recoverable = result.recoverable
        case _:
            assert_never(result)

    if outcome.navigated_to is not None:
        target = outcome.navigated_to
        response.navigated_to = TargetOut(
            module=target.module, screen=target.screen, parameters=dict(target.parameters),
        )
    if outcome.recovery is not None:
        response.recovery_actions = [a.value for a in outcome.recovery.actions]
        response.suggested_intents = list(outcome.recovery.suggested_intents)
    if outcome.formatted is not None:
        formatted = outcome.formatted
        response.disclaimer_type = formatted.disclaimer_type.value if formatted.disclaimer_type else None
        response.pattern_references = formatted.pattern_references_count
    return response
