"""Priority scoring engine for taskintel."""

from taskintel.engine.priority import (
    calculate_due_date_urgency,
    calculate_dependency_score,
    calculate_time_pressure,
    calculate_priority_score,
    map_score_to_priority,
    calculate_confidence,
    generate_reasoning,
    analyze_task,
    build_task_context,
    PriorityEngine,
)
from taskintel.engine.learning import NeutralPatternProvider, NoOpLearningStrategy

__all__ = [
    "calculate_due_date_urgency",
    "calculate_dependency_score",
    "calculate_time_pressure",
    "calculate_priority_score",
    "map_score_to_priority",
    "calculate_confidence",
    "generate_reasoning",
    "analyze_task",
    "build_task_context",
    "PriorityEngine",
    "NeutralPatternProvider",
    "NoOpLearningStrategy",
]
