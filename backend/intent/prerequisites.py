"""Prerequisite checks run before a routed intent's action executes."""
from enum import Enum
from typing import Dict, List, Tuple

from intent.models import IntentType
from session.models import SessionContext


class Prerequisite(str, Enum):
    ROUND_ACTIVE = "ROUND_ACTIVE"


# Hard requirements: the action cannot run without them
_REQUIRED: Dict[IntentType, Tuple[Prerequisite, ...]] = {
    IntentType.SCORE_ENTRY: (Prerequisite.ROUND_ACTIVE,),
    IntentType.ROUND_END: (Prerequisite.ROUND_ACTIVE,),
}

# Soft requirements: the action runs, but with a hint
_ADVISORY: Dict[IntentType, Tuple[Prerequisite, ...]] = {
    IntentType.SHOT_RECOMMENDATION: (Prerequisite.ROUND_ACTIVE,),
}


def _satisfied(prerequisite: Prerequisite, context: SessionContext) -> bool:
    if prerequisite is Prerequisite.ROUND_ACTIVE:
        return context.has_active_round
    return True


def missing_prerequisites(intent_type: IntentType, context: SessionContext) -> List[Prerequisite]:
    return [p for p in _REQUIRED.get(intent_type, ()) if not _satisfied(p, context)]


def missing_advisories(intent_type: IntentType, context: SessionContext) -> List[Prerequisite]:
    return [p for p in _ADVISORY.get(intent_type, ()) if not _satisfied(p, context)]
