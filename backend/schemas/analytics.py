"""Analytics event schemas.

Payloads carry length/category metadata only. Raw user text never appears
in an event; free-form fields (error messages) are redacted on emit.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional
from pydantic import BaseModel, Field
import uuid

from intent.models import InputType, IntentType, Module


class AnalyticsEventType(str, Enum):
    INPUT_RECEIVED = "input_received"
    INTENT_CLASSIFIED = "intent_classified"
    ROUTE_EXECUTED = "route_executed"
    CLARIFICATION_REQUESTED = "clarification_requested"
    SUGGESTION_SELECTED = "suggestion_selected"
    ERROR_OCCURRED = "error_occurred"


class AnalyticsEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class InputReceivedEvent(AnalyticsEvent):
    event_type: Literal[AnalyticsEventType.INPUT_RECEIVED] = AnalyticsEventType.INPUT_RECEIVED
    input_type: InputType
    input_length: int = Field(ge=0)


class IntentClassifiedEvent(AnalyticsEvent):
    event_type: Literal[AnalyticsEventType.INTENT_CLASSIFIED] = AnalyticsEventType.INTENT_CLASSIFIED
    intent: Optional[IntentType] = None
    confidence: Optional[float] = None
    latency_ms: float = Field(ge=0)
    was_successful: bool


class RouteExecutedEvent(AnalyticsEvent):
    event_type: Literal[AnalyticsEventType.ROUTE_EXECUTED] = AnalyticsEventType.ROUTE_EXECUTED
    module: Module
    screen: str
    latency_ms: float = Field(ge=0)
    parameter_keys: List[str] = Field(default_factory=list)


class ClarificationRequestedEvent(AnalyticsEvent):
    event_type: Literal[AnalyticsEventType.CLARIFICATION_REQUESTED] = AnalyticsEventType.CLARIFICATION_REQUESTED
    input_length: int = Field(ge=0)
    confidence: Optional[float] = None
    suggestions_count: int = Field(ge=1, le=3)


class SuggestionSelectedEvent(AnalyticsEvent):
    event_type: Literal[AnalyticsEventType.SUGGESTION_SELECTED] = AnalyticsEventType.SUGGESTION_SELECTED
    intent: IntentType
    suggestion_index: int = Field(ge=0)


class ErrorOccurredEvent(AnalyticsEvent):
    event_type: Literal[AnalyticsEventType.ERROR_OCCURRED] = AnalyticsEventType.ERROR_OCCURRED
    error_code: str
    message: str
    recoverable: bool
