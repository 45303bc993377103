"""Constants for taskintel.

This module centralizes all magic numbers and default values used throughout the engine.
"""

from taskintel.models.task import TaskPriority


# Priority scoring: neutral baseline the weighted factors are added to
NEUTRAL_SCORE = 0.5

# Factor weights (additive terms on top of NEUTRAL_SCORE, clamped afterwards)
WEIGHT_DUE_DATE = 0.30
WEIGHT_DEPENDENCY = 0.20
WEIGHT_TIME_PRESSURE = 0.20
WEIGHT_PROJECT = 0.15
WEIGHT_CATEGORY = 0.10
WEIGHT_HISTORICAL = 0.05

# Factor contributions
PROJECT_BONUS = 0.1
BLOCKED_PENALTY = -0.3
BLOCKING_BASE = 0.2
BLOCKING_PER_TASK = 0.1
BLOCKING_CAP = 0.3
TIME_PRESSURE_INSUFFICIENT = 0.5
TIME_PRESSURE_TIGHT = 0.3
TIME_PRESSURE_TIGHT_RATIO = 1.5

# Lower bound of each priority bucket (score >= bound)
PRIORITY_THRESHOLDS = {
    TaskPriority.URGENT: 0.8,
    TaskPriority.HIGH: 0.6,
    TaskPriority.MEDIUM: 0.4,
    TaskPriority.LOW: 0.0,
}

# Confidence bands for analysis summaries
HIGH_CONFIDENCE_THRESHOLD = 0.7
MEDIUM_CONFIDENCE_THRESHOLD = 0.4

# Historical pattern defaults (neutral until learning is implemented)
DEFAULT_USER_PRIORITY_PREFERENCE = 0.0
DEFAULT_CATEGORY_WEIGHT = 0.5

# Recurrence
DEFAULT_MAX_INSTANCES = 10
MAX_RECURRENCE_INSTANCES = 1000  # Hard ceiling regardless of caller request
MAX_RECURRENCE_SEARCH_YEARS = 100  # Minimum span searched before giving up on a rule that never matches
