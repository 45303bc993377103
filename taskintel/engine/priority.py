"""Priority scoring for taskintel.

Scores a task from independent weighted signals, maps the score to one of four
priorities and explains the result. Scoring is a pure function of a TaskContext
and `now`: same inputs always produce the same suggestion.

The score is additive, not a weighted average: each factor contribution is
bounded to [-1, 1], multiplied by its weight, added to a neutral 0.5 baseline,
and the total is clamped to [0, 1].
"""

import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from taskintel.database.repository import TaskRepository
from taskintel.engine.learning import (
    HistoricalPatternProvider,
    LearningStrategy,
    NeutralPatternProvider,
    NoOpLearningStrategy,
)
from taskintel.models.constants import (
    NEUTRAL_SCORE,
    WEIGHT_DUE_DATE,
    WEIGHT_DEPENDENCY,
    WEIGHT_TIME_PRESSURE,
    WEIGHT_PROJECT,
    WEIGHT_CATEGORY,
    WEIGHT_HISTORICAL,
    PROJECT_BONUS,
    BLOCKED_PENALTY,
    BLOCKING_BASE,
    BLOCKING_PER_TASK,
    BLOCKING_CAP,
    TIME_PRESSURE_INSUFFICIENT,
    TIME_PRESSURE_TIGHT,
    TIME_PRESSURE_TIGHT_RATIO,
    PRIORITY_THRESHOLDS,
    HIGH_CONFIDENCE_THRESHOLD,
    MEDIUM_CONFIDENCE_THRESHOLD,
)
from taskintel.models.priority import (
    DependencyState,
    FactorType,
    HistoricalPattern,
    PriorityAnalysis,
    PriorityCorrection,
    PriorityFactor,
    PrioritySuggestion,
    PrioritySummary,
    TaskContext,
)
from taskintel.models.task import Task, TaskPriority, TaskScope, TaskStatus

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _seconds_until(due: datetime, now: Optional[datetime]) -> float:
    """Seconds from `now` to `due`; naive datetimes are treated as UTC."""
    if now is None:
        now = datetime.now(due.tzinfo) if due.tzinfo else datetime.utcnow()
    if due.tzinfo and not now.tzinfo:
        now = now.replace(tzinfo=timezone.utc)
    elif now.tzinfo and not due.tzinfo:
        due = due.replace(tzinfo=timezone.utc)
    return (due - now).total_seconds()


def days_until(due: datetime, now: Optional[datetime] = None) -> int:
    """Whole days until `due`, floored (negative when overdue)."""
    return math.floor(_seconds_until(due, now) / _SECONDS_PER_DAY)


def _has_project(task: Task) -> bool:
    return bool(task.project_id) or task.project is not None


def calculate_due_date_urgency(due_date: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Step function of whole days remaining.

    Returns:
        1.0 overdue, 0.9 today, 0.8 tomorrow, 0.6 in 2-3 days, 0.4 in 4-7 days,
        0.2 in 8-14 days, 0.0 beyond or with no due date
    """
    if due_date is None:
        return 0.0

    diff_days = days_until(due_date, now)
    if diff_days < 0:
        return 1.0
    if diff_days == 0:
        return 0.9
    if diff_days == 1:
        return 0.8
    if diff_days <= 3:
        return 0.6
    if diff_days <= 7:
        return 0.4
    if diff_days <= 14:
        return 0.2
    return 0.0


def calculate_dependency_score(dependencies: DependencyState) -> float:
    """Penalize blocked work, reward work that unblocks others (capped)."""
    if dependencies.blocked:
        return BLOCKED_PENALTY
    if dependencies.blocking_count > 0:
        return BLOCKING_BASE + min(BLOCKING_CAP, dependencies.blocking_count * BLOCKING_PER_TASK)
    return 0.0


def calculate_time_pressure(
    time_estimate: Optional[int],
    due_date: Optional[datetime],
    now: Optional[datetime] = None,
) -> float:
    """Compare remaining hours to the estimate (minutes)."""
    if not time_estimate or due_date is None:
        return 0.0

    remaining_hours = _seconds_until(due_date, now) / 3600
    estimate_hours = time_estimate / 60
    if remaining_hours < estimate_hours:
        return TIME_PRESSURE_INSUFFICIENT
    if remaining_hours < estimate_hours * TIME_PRESSURE_TIGHT_RATIO:
        return TIME_PRESSURE_TIGHT
    return 0.0


def _due_date_description(due_date: Optional[datetime], impact: float) -> str:
    if due_date is None:
        return "No due date"
    if impact >= 0.8:
        return "Urgent due date"
    if impact >= 0.5:
        return "Approaching due date"
    return "Due date in future"


def _dependency_description(dependencies: DependencyState) -> str:
    if dependencies.blocked:
        return "Blocked by dependencies"
    if dependencies.blocking_count > 0:
        return f"Blocking {dependencies.blocking_count} task(s)"
    return "No dependency impact"


def _time_pressure_description(task: Task, impact: float) -> str:
    if not task.time_estimate:
        return "No time estimate"
    if impact >= 0.4:
        return "Time pressure detected"
    return "Adequate time available"


def score_with_factors(context: TaskContext, now: Optional[datetime] = None) -> Tuple[float, List[PriorityFactor]]:
    """Compute the clamped score and the factors that produced it.

    Due date, dependency and time pressure factors are always listed; project,
    category and historical factors only when they contribute.
    """
    task = context.task
    factors: List[PriorityFactor] = []
    score = NEUTRAL_SCORE

    # 1. Due date urgency
    due_score = _clamp(calculate_due_date_urgency(task.due_date, now), -1.0, 1.0)
    score += due_score * WEIGHT_DUE_DATE
    factors.append(PriorityFactor(
        type=FactorType.DUE_DATE,
        impact=due_score,
        description=_due_date_description(task.due_date, due_score),
    ))

    # 2. Dependency state
    dependency_score = _clamp(calculate_dependency_score(context.dependencies), -1.0, 1.0)
    score += dependency_score * WEIGHT_DEPENDENCY
    factors.append(PriorityFactor(
        type=FactorType.DEPENDENCY,
        impact=dependency_score,
        description=_dependency_description(context.dependencies),
    ))

    # 3. Time pressure
    pressure_score = _clamp(calculate_time_pressure(task.time_estimate, task.due_date, now), -1.0, 1.0)
    score += pressure_score * WEIGHT_TIME_PRESSURE
    factors.append(PriorityFactor(
        type=FactorType.TIME_PRESSURE,
        impact=pressure_score,
        description=_time_pressure_description(task, pressure_score),
    ))

    # 4. Project membership
    if _has_project(task):
        score += PROJECT_BONUS * WEIGHT_PROJECT
        name = task.project.name if task.project else task.project_id
        factors.append(PriorityFactor(
            type=FactorType.PROJECT,
            impact=PROJECT_BONUS,
            description=f"Part of project: {name}",
        ))

    pattern = context.historical_pattern
    if pattern is not None:
        # 5. Category affinity, normalized from [0, 1] to [-1, 1]
        category_score = _clamp((pattern.category_weight - 0.5) * 2, -1.0, 1.0)
        if category_score != 0:
            score += category_score * WEIGHT_CATEGORY
            factors.append(PriorityFactor(
                type=FactorType.CATEGORY,
                impact=category_score,
                description=f"Category: {task.category or 'Uncategorized'}",
            ))

        # 6. Historical user bias
        preference = _clamp(pattern.user_priority_preference, -1.0, 1.0)
        if preference != 0:
            score += preference * WEIGHT_HISTORICAL
            factors.append(PriorityFactor(
                type=FactorType.HISTORICAL,
                impact=preference,
                description="Based on your past priority choices",
            ))

    return _clamp(score, 0.0, 1.0), factors


def calculate_priority_score(context: TaskContext, now: Optional[datetime] = None) -> float:
    """Priority score in [0, 1] for a task context."""
    score, _ = score_with_factors(context, now)
    return score


def map_score_to_priority(score: float) -> TaskPriority:
    """Map a score to the priority whose lower bound it reaches."""
    if score >= PRIORITY_THRESHOLDS[TaskPriority.URGENT]:
        return TaskPriority.URGENT
    if score >= PRIORITY_THRESHOLDS[TaskPriority.HIGH]:
        return TaskPriority.HIGH
    if score >= PRIORITY_THRESHOLDS[TaskPriority.MEDIUM]:
        return TaskPriority.MEDIUM
    return TaskPriority.LOW


def calculate_confidence(score: float, priority: TaskPriority) -> float:
    """Confidence grows with distance from the priority's lower bound.

    A score that barely clears its threshold is a low-confidence call.
    """
    threshold = PRIORITY_THRESHOLDS[TaskPriority(priority)]
    distance = abs(score - threshold)
    return _clamp(0.5 + distance * 2, 0.0, 1.0)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" + ("" if count == 1 else "s")


def generate_reasoning(context: TaskContext, priority: TaskPriority, now: Optional[datetime] = None) -> str:
    """Build the human-readable explanation for a suggestion."""
    task = context.task
    label = TaskPriority(priority).value
    reasons: List[str] = []

    if task.due_date is not None:
        diff_days = days_until(task.due_date, now)
        if diff_days < 0:
            reasons.append(f"Overdue by {_plural(abs(diff_days), 'day')}")
        elif diff_days == 0:
            reasons.append("Due today")
        elif diff_days == 1:
            reasons.append("Due tomorrow")
        elif diff_days <= 7:
            reasons.append(f"Due in {diff_days} days")

    if context.dependencies.blocked:
        reasons.append("Blocked by incomplete dependencies")
    elif context.dependencies.blocking_count > 0:
        reasons.append(f"Blocking {_plural(context.dependencies.blocking_count, 'other task')}")

    if task.time_estimate:
        if task.time_estimate < 60:
            reasons.append(f"Estimated {_plural(task.time_estimate, 'minute')}")
        else:
            hours = math.floor(task.time_estimate / 60 + 0.5)
            reasons.append(f"Estimated {_plural(hours, 'hour')}")

    if _has_project(task):
        name = task.project.name if task.project else task.project_id
        reasons.append(f"Part of project: {name}")

    if not reasons:
        return f"Suggested {label} priority based on task analysis"
    return f"Suggested {label} priority: {', '.join(reasons)}"


def analyze_task(context: TaskContext, now: Optional[datetime] = None) -> PrioritySuggestion:
    """Score one task and package the result as a suggestion."""
    score, factors = score_with_factors(context, now)
    suggested = map_score_to_priority(score)
    return PrioritySuggestion(
        task_id=context.task.id,
        task_title=context.task.title,
        current_priority=context.task.priority,
        suggested_priority=suggested,
        score=score,
        confidence=calculate_confidence(score, suggested),
        reasoning=generate_reasoning(context, suggested, now),
        factors=factors,
    )


def build_task_context(
    task: Task,
    dependency_tasks: Dict[str, Task],
    pattern: Optional[HistoricalPattern] = None,
) -> TaskContext:
    """Assemble a TaskContext from a task and the tasks it depends on.

    A task is blocked when any dependency that still exists is not done.
    """
    blocked = any(
        dependency_tasks[dep_id].status != TaskStatus.DONE
        for dep_id in task.depends_on
        if dep_id in dependency_tasks
    )
    return TaskContext(
        task=task,
        dependencies=DependencyState(
            blocked=blocked,
            blocking_count=len(task.blocks),
            depends_on_count=len(task.depends_on),
        ),
        historical_pattern=pattern,
    )


def summarize(suggestions: List[PrioritySuggestion], total_tasks: int) -> PrioritySummary:
    return PrioritySummary(
        total_tasks=total_tasks,
        needs_prioritization=sum(1 for s in suggestions if s.changes_priority),
        high_confidence=sum(1 for s in suggestions if s.confidence >= HIGH_CONFIDENCE_THRESHOLD),
        medium_confidence=sum(
            1 for s in suggestions
            if MEDIUM_CONFIDENCE_THRESHOLD <= s.confidence < HIGH_CONFIDENCE_THRESHOLD
        ),
        low_confidence=sum(1 for s in suggestions if s.confidence < MEDIUM_CONFIDENCE_THRESHOLD),
    )


class PriorityEngine:
    """Batch priority analysis over an owner's tasks."""

    def __init__(
        self,
        repo: TaskRepository,
        pattern_provider: Optional[HistoricalPatternProvider] = None,
        learning: Optional[LearningStrategy] = None,
    ):
        self.repo = repo
        self.pattern_provider = pattern_provider or NeutralPatternProvider()
        self.learning = learning or NoOpLearningStrategy()

    def _contexts_for(self, owner_id: str, tasks: List[Task]) -> List[TaskContext]:
        dep_ids = {dep_id for task in tasks for dep_id in task.depends_on}
        dependency_tasks = {t.id: t for t in self.repo.get_many(sorted(dep_ids))}
        return [
            build_task_context(task, dependency_tasks, self.pattern_provider.get_pattern(owner_id, task.category))
            for task in tasks
        ]

    def generate_priority_suggestions(
        self,
        owner_id: str,
        scope: Optional[TaskScope] = None,
        now: Optional[datetime] = None,
    ) -> List[PrioritySuggestion]:
        """Suggestions for every non-done task in scope whose priority should change.

        Sorted by confidence, highest first.
        """
        try:
            tasks = self.repo.list_for_scope(owner_id, scope)
            suggestions = [
                suggestion
                for suggestion in (analyze_task(ctx, now) for ctx in self._contexts_for(owner_id, tasks))
                if suggestion.changes_priority
            ]
            suggestions.sort(key=lambda s: s.confidence, reverse=True)
        except Exception as e:
            logger.error(f"Error generating priority suggestions for user {owner_id}: {type(e).__name__}: {str(e)}")
            raise

        logger.info(f"Generated {len(suggestions)} priority suggestions for user {owner_id} from {len(tasks)} tasks")
        return suggestions

    def analyze_task_priorities(
        self,
        owner_id: str,
        task_ids: List[str],
        scope: Optional[TaskScope] = None,
        now: Optional[datetime] = None,
    ) -> PriorityAnalysis:
        """Unfiltered suggestions plus a confidence summary.

        An empty `task_ids` analyzes every active task in scope.
        """
        try:
            tasks = self.repo.list_for_scope(owner_id, scope, task_ids=task_ids)
            suggestions = [analyze_task(ctx, now) for ctx in self._contexts_for(owner_id, tasks)]
        except Exception as e:
            logger.error(f"Error analyzing task priorities for user {owner_id}: {type(e).__name__}: {str(e)}")
            raise
        return PriorityAnalysis(suggestions=suggestions, summary=summarize(suggestions, len(tasks)))

    def learn_from_corrections(self, owner_id: str, corrections: List[PriorityCorrection]) -> None:
        """Feed accepted/rejected suggestions to the learning strategy.

        Never raises: learning must not fail the caller's larger operation.
        """
        try:
            logger.info(f"Learning from {len(corrections)} priority corrections for user {owner_id}")
            self.learning.record_corrections(owner_id, corrections)
        except Exception as e:
            logger.error(f"Error learning from corrections for user {owner_id}: {type(e).__name__}: {str(e)}")
