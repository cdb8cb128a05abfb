"""Badge rule evaluation.

Each catalog badge carries a condition that is resolved into one of a small
closed set of rule kinds:

    threshold            numeric payload field compared against a limit
    stage_equals         stage advancement to a given stage with a minimum score
    all_stages_complete  advancement to the final stage after completing every stage
    consecutive_count    run of questionnaire completions no more than N days apart
    boolean_flag         payload fields equal to fixed values
    count_at_least       payload fields match and a counter reaches a minimum

A rule only fires for the event types listed in its ``triggers``. Predicates
are looked up in ``_PREDICATES`` by rule kind. Rules are built either from an
explicit ``{"kind": ...}`` condition document or, for the seeded catalog,
from the badge key (see ``LEGACY_RULE_FACTORIES``).
"""

import uuid
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from datetime import datetime
from typing import Any, ClassVar, Mapping

from hub_empresas.core.interfaces import ICompletionHistory
from hub_empresas.core.templates import PROGRAM_STAGES
from hub_empresas.errors import StoreError
from hub_empresas.observability import get_logger

logger = get_logger(__name__)

# Event types that may award badges
EVENT_QUESTIONNAIRE_COMPLETED = "questionnaire_completed"
EVENT_STAGE_ADVANCED = "stage_advanced"
EVENT_SCORE_EXCEPCIONAL = "score_excepcional"
EVENT_DELIVERABLE_APPROVED = "deliverable_approved"
EVENT_METRIC_TARGET_REACHED = "metric_target_reached"
EVENT_MILESTONE_REACHED = "milestone_reached"

BADGE_EVENT_TYPES: tuple[str, ...] = (
    EVENT_QUESTIONNAIRE_COMPLETED,
    EVENT_STAGE_ADVANCED,
    EVENT_SCORE_EXCEPCIONAL,
    EVENT_DELIVERABLE_APPROVED,
    EVENT_METRIC_TARGET_REACHED,
    EVENT_MILESTONE_REACHED,
)

BADGE_TYPES: tuple[str, ...] = ("stage_progression", "achievement", "milestone")

FINAL_STAGE: str = PROGRAM_STAGES[-1]


# ---------------------------------------------------------------------------
# Rule variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ThresholdRule:
    """Numeric payload field compared with ``limit``.

    Attributes:
        field: Payload key holding the number.
        limit: Comparison bound.
        operator: 'gte' (at least) or 'lte' (at most).
        missing_value: Value used when the field is absent; None means an
            absent field never matches.
    """

    kind: ClassVar[str] = "threshold"

    triggers: frozenset[str]
    field: str
    limit: float
    operator: str = "gte"
    missing_value: float | None = None


@dataclass(frozen=True)
class StageEqualsRule:
    """Stage advancement to ``stage`` with a score of at least ``score_min``."""

    kind: ClassVar[str] = "stage_equals"

    triggers: frozenset[str]
    stage: str | None
    score_min: float = 70.0


@dataclass(frozen=True)
class AllStagesCompleteRule:
    """Advancement to ``final_stage`` after completing every program stage."""

    kind: ClassVar[str] = "all_stages_complete"

    triggers: frozenset[str]
    final_stage: str = FINAL_STAGE
    stages: tuple[str, ...] = PROGRAM_STAGES


@dataclass(frozen=True)
class ConsecutiveCountRule:
    """At least ``minimum`` completions with gaps of at most ``window_days``."""

    kind: ClassVar[str] = "consecutive_count"

    triggers: frozenset[str]
    minimum: int = 3
    window_days: int = 30
    lookback: int = 10


@dataclass(frozen=True)
class BooleanFlagRule:
    """Every key in ``match`` equals the payload value."""

    kind: ClassVar[str] = "boolean_flag"

    triggers: frozenset[str]
    match: Mapping[str, Any] = dataclass_field(default_factory=dict)


@dataclass(frozen=True)
class CountAtLeastRule:
    """Payload matches ``match`` and ``payload[field] >= minimum``."""

    kind: ClassVar[str] = "count_at_least"

    triggers: frozenset[str]
    field: str
    minimum: float
    match: Mapping[str, Any] = dataclass_field(default_factory=dict)


BadgeRule = (
    ThresholdRule
    | StageEqualsRule
    | AllStagesCompleteRule
    | ConsecutiveCountRule
    | BooleanFlagRule
    | CountAtLeastRule
)


@dataclass(frozen=True)
class BadgeDefinition:
    """A catalog badge together with its resolved rule.

    Attributes:
        badge_id: Badge UUID.
        badge_key: Unique catalog key.
        label: Display label.
        description: Display description.
        icon: Emoji or URL.
        badge_type: stage_progression | achievement | milestone.
        conditions: Raw condition document as stored.
        rule: Resolved rule, None when the badge has no known rule.
    """

    badge_id: uuid.UUID
    badge_key: str
    label: str
    description: str
    icon: str
    badge_type: str
    conditions: Mapping[str, Any]
    rule: BadgeRule | None


# ---------------------------------------------------------------------------
# Rule construction
# ---------------------------------------------------------------------------


def _triggers(conditions: Mapping[str, Any], default: Iterable[str]) -> frozenset[str]:
    raw = conditions.get("triggers") or conditions.get("trigger")
    if raw is None:
        return frozenset(default)
    if isinstance(raw, str):
        return frozenset({raw})
    return frozenset(raw)


def _build_threshold(conditions: Mapping[str, Any]) -> ThresholdRule:
    missing = conditions.get("missing_value")
    return ThresholdRule(
        triggers=_triggers(conditions, ()),
        field=str(conditions["field"]),
        limit=float(conditions["limit"]),
        operator=str(conditions.get("operator", "gte")),
        missing_value=float(missing) if missing is not None else None,
    )


def _build_stage_equals(conditions: Mapping[str, Any]) -> StageEqualsRule:
    return StageEqualsRule(
        triggers=_triggers(conditions, (EVENT_STAGE_ADVANCED,)),
        stage=conditions.get("stage"),
        score_min=float(conditions.get("score_min") or 70),
    )


def _build_all_stages(conditions: Mapping[str, Any]) -> AllStagesCompleteRule:
    return AllStagesCompleteRule(
        triggers=_triggers(conditions, (EVENT_STAGE_ADVANCED,)),
        final_stage=str(conditions.get("final_stage") or FINAL_STAGE),
    )


def _build_consecutive(conditions: Mapping[str, Any]) -> ConsecutiveCountRule:
    return ConsecutiveCountRule(
        triggers=_triggers(conditions, (EVENT_QUESTIONNAIRE_COMPLETED,)),
        minimum=int(conditions.get("consecutive_questionnaires") or conditions.get("minimum") or 3),
        window_days=int(conditions.get("window_days") or 30),
        lookback=int(conditions.get("lookback") or 10),
    )


def _build_boolean_flag(conditions: Mapping[str, Any]) -> BooleanFlagRule:
    return BooleanFlagRule(
        triggers=_triggers(conditions, ()),
        match=dict(conditions.get("match") or {}),
    )


def _build_count_at_least(conditions: Mapping[str, Any]) -> CountAtLeastRule:
    return CountAtLeastRule(
        triggers=_triggers(conditions, ()),
        field=str(conditions["field"]),
        minimum=float(conditions["minimum"]),
        match=dict(conditions.get("match") or {}),
    )


_RULE_BUILDERS: dict[str, Callable[[Mapping[str, Any]], BadgeRule]] = {
    ThresholdRule.kind: _build_threshold,
    StageEqualsRule.kind: _build_stage_equals,
    AllStagesCompleteRule.kind: _build_all_stages,
    ConsecutiveCountRule.kind: _build_consecutive,
    BooleanFlagRule.kind: _build_boolean_flag,
    CountAtLeastRule.kind: _build_count_at_least,
}


# Rules of the seeded catalog, keyed by badge_key. Each factory reads the
# optional overrides from the badge's stored conditions.
LEGACY_RULE_FACTORIES: dict[str, Callable[[Mapping[str, Any]], BadgeRule]] = {
    "score_excepcional": lambda c: ThresholdRule(
        triggers=frozenset({EVENT_SCORE_EXCEPCIONAL}),
        field="score",
        limit=float(c.get("score_min") or 90),
    ),
    "graduado_programa": lambda c: AllStagesCompleteRule(
        triggers=frozenset({EVENT_STAGE_ADVANCED}),
    ),
    "mestre_canvas": lambda c: BooleanFlagRule(
        triggers=frozenset({EVENT_DELIVERABLE_APPROVED}),
        match={"deliverable_type": "canvas", "revisions_count": 0},
    ),
    "resposta_rapida": lambda c: ThresholdRule(
        triggers=frozenset({EVENT_QUESTIONNAIRE_COMPLETED}),
        field="completion_time_hours",
        limit=float(c.get("completion_time_hours") or 24),
        operator="lte",
        missing_value=0.0,
    ),
    "streak_master": lambda c: ConsecutiveCountRule(
        triggers=frozenset({EVENT_QUESTIONNAIRE_COMPLETED}),
        minimum=int(c.get("consecutive_questionnaires") or 3),
    ),
    "meta_financeira": lambda c: BooleanFlagRule(
        triggers=frozenset({EVENT_METRIC_TARGET_REACHED}),
        match={"metric": "financial_target"},
    ),
    "validacao_usuarios": lambda c: CountAtLeastRule(
        triggers=frozenset({EVENT_MILESTONE_REACHED}),
        field="count",
        minimum=float(c.get("interviews") or 20),
        match={"milestone": "user_interviews"},
    ),
    "mvp_validado": lambda c: BooleanFlagRule(
        triggers=frozenset({EVENT_MILESTONE_REACHED}),
        match={"milestone": "mvp_validated"},
    ),
    "crescimento_sustentavel": lambda c: CountAtLeastRule(
        triggers=frozenset({EVENT_METRIC_TARGET_REACHED}),
        field="months",
        minimum=float(c.get("growth_months") or 3),
        match={"metric": "consistent_growth"},
    ),
}


def resolve_rule(badge_key: str, conditions: Mapping[str, Any] | None) -> BadgeRule | None:
    """Resolve the rule for a catalog badge.

    An explicit ``kind`` in the conditions wins. Otherwise the seeded
    catalog rule for the badge key is used; any key containing ``_aprovado``
    is a stage approval badge.

    Args:
        badge_key: Catalog key of the badge.
        conditions: Stored condition document.

    Returns:
        The rule, or None when the badge has no known rule.

    Raises:
        ValueError: If an explicit kind is unknown or its parameters are invalid.
    """
    conditions = conditions or {}
    kind = conditions.get("kind")
    if kind is not None:
        builder = _RULE_BUILDERS.get(kind)
        if builder is None:
            raise ValueError(f"Unknown badge rule kind {kind!r} for badge {badge_key!r}")
        try:
            return builder(conditions)
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid conditions for badge {badge_key!r}: {exc}") from exc

    factory = LEGACY_RULE_FACTORIES.get(badge_key)
    if factory is not None:
        return factory(conditions)
    if "_aprovado" in badge_key:
        return _build_stage_equals(conditions)
    return None


def badge_from_record(record: Any) -> BadgeDefinition:
    """Build a BadgeDefinition from a Badge ORM row.

    Rows whose conditions cannot be resolved get ``rule=None`` and are
    logged, so a single malformed badge never breaks the catalog.
    """
    conditions: dict[str, Any] = dict(record.conditions or {})
    try:
        rule = resolve_rule(record.badge_key, conditions)
    except ValueError as exc:
        logger.warning(
            "Badge conditions could not be resolved",
            badge_key=record.badge_key,
            error=str(exc),
        )
        rule = None

    return BadgeDefinition(
        badge_id=record.id,
        badge_key=record.badge_key,
        label=record.label,
        description=record.description,
        icon=record.icon,
        badge_type=record.badge_type,
        conditions=conditions,
        rule=rule,
    )


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _same_value(value: Any, expected: Any) -> bool:
    # True == 1 and False == 0 in Python; a flag never matches a number.
    if isinstance(value, bool) != isinstance(expected, bool):
        return False
    return value == expected


def _matches(match: Mapping[str, Any], payload: Mapping[str, Any]) -> bool:
    return all(_same_value(payload.get(key), expected) for key, expected in match.items())


def count_consecutive_completions(
    completion_times: list[datetime],
    window_days: int = 30,
) -> int:
    """Length of the leading run of completions no more than window_days apart.

    Args:
        completion_times: Completion timestamps, most recent first.
        window_days: Largest allowed gap between adjacent completions.

    Returns:
        Run length starting at the most recent completion; 0 when empty.
    """
    if not completion_times:
        return 0

    consecutive = 1
    for previous, current in zip(completion_times, completion_times[1:]):
        days_apart = abs((previous - current).total_seconds()) / 86400
        if days_apart > window_days:
            break
        consecutive += 1
    return consecutive


Predicate = Callable[[Any, Mapping[str, Any], uuid.UUID, ICompletionHistory], Awaitable[bool]]


async def _threshold(
    rule: ThresholdRule,
    payload: Mapping[str, Any],
    company_id: uuid.UUID,
    history: ICompletionHistory,
) -> bool:
    value = _as_number(payload.get(rule.field))
    if value is None:
        if payload.get(rule.field) is not None or rule.missing_value is None:
            return False
        value = rule.missing_value
    if rule.operator == "lte":
        return value <= rule.limit
    return value >= rule.limit


async def _stage_equals(
    rule: StageEqualsRule,
    payload: Mapping[str, Any],
    company_id: uuid.UUID,
    history: ICompletionHistory,
) -> bool:
    score = _as_number(payload.get("score"))
    return (
        rule.stage is not None
        and payload.get("to_stage") == rule.stage
        and score is not None
        and score >= rule.score_min
    )


async def _all_stages_complete(
    rule: AllStagesCompleteRule,
    payload: Mapping[str, Any],
    company_id: uuid.UUID,
    history: ICompletionHistory,
) -> bool:
    if payload.get("to_stage") != rule.final_stage:
        return False
    completed = await history.list_completed_program_keys(company_id)
    return set(rule.stages).issubset(completed)


async def _consecutive_count(
    rule: ConsecutiveCountRule,
    payload: Mapping[str, Any],
    company_id: uuid.UUID,
    history: ICompletionHistory,
) -> bool:
    completion_times = await history.list_recent_completion_times(company_id, rule.lookback)
    return count_consecutive_completions(completion_times, rule.window_days) >= rule.minimum


async def _boolean_flag(
    rule: BooleanFlagRule,
    payload: Mapping[str, Any],
    company_id: uuid.UUID,
    history: ICompletionHistory,
) -> bool:
    return bool(rule.match) and _matches(rule.match, payload)


async def _count_at_least(
    rule: CountAtLeastRule,
    payload: Mapping[str, Any],
    company_id: uuid.UUID,
    history: ICompletionHistory,
) -> bool:
    value = _as_number(payload.get(rule.field))
    return _matches(rule.match, payload) and value is not None and value >= rule.minimum


_PREDICATES: dict[str, Predicate] = {
    ThresholdRule.kind: _threshold,
    StageEqualsRule.kind: _stage_equals,
    AllStagesCompleteRule.kind: _all_stages_complete,
    ConsecutiveCountRule.kind: _consecutive_count,
    BooleanFlagRule.kind: _boolean_flag,
    CountAtLeastRule.kind: _count_at_least,
}


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class BadgeRuleEvaluator:
    """Decides which catalog badges an event qualifies a company for.

    Args:
        history: Read access to the company's questionnaire completions,
            needed by the all-stages and consecutive rules.
    """

    def __init__(self, history: ICompletionHistory) -> None:
        self._history = history

    async def evaluate(
        self,
        badge: BadgeDefinition,
        event_type: str,
        payload: Mapping[str, Any],
        company_id: uuid.UUID,
    ) -> bool:
        """Return True if the event satisfies the badge's rule.

        Events whose type is not among the rule's triggers never match.
        """
        rule = badge.rule
        if rule is None or event_type not in rule.triggers:
            return False
        return await _PREDICATES[rule.kind](rule, payload, company_id, self._history)

    async def award_eligible(
        self,
        badges: Iterable[BadgeDefinition],
        event_type: str,
        payload: Mapping[str, Any],
        company_id: uuid.UUID,
        already_awarded: Iterable[uuid.UUID] = (),
    ) -> list[BadgeDefinition]:
        """Return the badges newly earned by this event, in catalog order.

        Badges the company already holds are skipped without evaluation. A
        history lookup failure for one badge is logged and that badge is
        skipped; the remaining badges are still evaluated.

        Args:
            badges: Active catalog badges.
            event_type: Type of the incoming event.
            payload: Event data.
            company_id: Company the event belongs to.
            already_awarded: Badge ids the company already holds.

        Returns:
            Badges to award.
        """
        held = set(already_awarded)
        eligible: list[BadgeDefinition] = []

        for badge in badges:
            if badge.badge_id in held:
                continue
            try:
                qualifies = await self.evaluate(badge, event_type, payload, company_id)
            except StoreError as exc:
                logger.warning(
                    "Badge evaluation skipped after history lookup failure",
                    badge_key=badge.badge_key,
                    company_id=str(company_id),
                    error=str(exc),
                )
                continue
            if qualifies:
                eligible.append(badge)

        logger.debug(
            "Badge eligibility evaluated",
            company_id=str(company_id),
            event_type=event_type,
            eligible=[badge.badge_key for badge in eligible],
        )
        return eligible
