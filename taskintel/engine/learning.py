"""Learning hooks for priority scoring.

Historical patterns and correction learning are pluggable so a real learning
backend can be substituted without touching the scoring formula. The defaults
are neutral: patterns contribute nothing and corrections are not recorded.
"""

import logging
from typing import List, Optional, Protocol

from taskintel.models.constants import DEFAULT_CATEGORY_WEIGHT, DEFAULT_USER_PRIORITY_PREFERENCE
from taskintel.models.priority import HistoricalPattern, PriorityCorrection

logger = logging.getLogger(__name__)


class HistoricalPatternProvider(Protocol):
    def get_pattern(self, owner_id: str, category: Optional[str]) -> HistoricalPattern: ...


class LearningStrategy(Protocol):
    def record_corrections(self, owner_id: str, corrections: List[PriorityCorrection]) -> None: ...


class NeutralPatternProvider:
    """Returns the neutral pattern for every owner and category."""

    def get_pattern(self, owner_id: str, category: Optional[str]) -> HistoricalPattern:
        return HistoricalPattern(
            user_priority_preference=DEFAULT_USER_PRIORITY_PREFERENCE,
            category_weight=DEFAULT_CATEGORY_WEIGHT,
        )


class NoOpLearningStrategy:
    """Accepts corrections and records nothing."""

    def record_corrections(self, owner_id: str, corrections: List[PriorityCorrection]) -> None:
        logger.debug(f"Ignoring {len(corrections)} priority corrections for user {owner_id}")
