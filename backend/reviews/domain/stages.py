"""
reviews.domain.stages — Stage model for every case type.

Each case type declares its review stages, the domain labels each stage
uses for the three semantic statuses, and the rule that combines stage
statuses into the overall case status.

    ┌──────────────┬──────────────┬─────────────────────────────────────┐
    │ Case type    │ Rule         │ Stages                              │
    ├──────────────┼──────────────┼─────────────────────────────────────┤
    │ award        │ sequential   │ advisor → admin                     │
    │ punishment   │ sequential   │ admin                               │
    │ appeal       │ sequential   │ advisor → admin                     │
    │ status_change│ sequential   │ advisor → admin                     │
    │ leave_school │ parallel_and │ dormitory, library, finance, admin  │
    └──────────────┴──────────────┴─────────────────────────────────────┘

Everything here is configuration plus two small combination functions.
Adding a case type means adding a ``CASE_TYPES`` entry (and its message
templates); no other module branches on case type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Mapping

from core.domain.exceptions import ConfigurationError, InvalidTransition


class StageStatus(str, Enum):
    """Semantic status of a single review stage."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not StageStatus.PENDING


class OverallStatus(str, Enum):
    """Semantic case-wide status derived from the stage statuses."""

    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not OverallStatus.IN_PROGRESS


class CombinationRule(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL_AND = "parallel_and"


class CaseType(str, Enum):
    AWARD = "award"
    PUNISHMENT = "punishment"
    APPEAL = "appeal"
    STATUS_CHANGE = "status_change"
    LEAVE_SCHOOL = "leave_school"


# ── Definitions ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class StageDefinition:
    """
    One review checkpoint.

    Attributes:
        name:          Key used in stage maps (``"advisor"``).
        reviewer_role: Display name of the reviewing office, used as the
                       notification publisher.
        title:         Display name of the step, available to templates.
        labels:        Domain label → semantic status.
    """

    name: str
    reviewer_role: str
    title: str
    labels: Mapping[str, StageStatus]

    def parse(self, label: str) -> StageStatus:
        """Translate a domain label (or semantic value) into a ``StageStatus``."""
        if label in self.labels:
            return self.labels[label]
        try:
            return StageStatus(label)
        except ValueError:
            raise ConfigurationError(
                f"Unknown status label '{label}' for stage '{self.name}'."
            ) from None

    def label_for(self, status: StageStatus) -> str:
        for label, value in self.labels.items():
            if value is status:
                return label
        return status.value


@dataclass(frozen=True)
class CaseTypeDefinition:
    """Static configuration of one case type."""

    case_type: CaseType
    rule: CombinationRule
    stages: tuple[StageDefinition, ...]
    overall_labels: Mapping[str, OverallStatus]
    id_prefix: str
    category: str

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)

    def stage(self, name: str) -> StageDefinition:
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise ConfigurationError(
            f"Case type '{self.case_type.value}' has no stage named '{name}'."
        )

    def parse_overall(self, label: str) -> OverallStatus:
        if label in self.overall_labels:
            return self.overall_labels[label]
        try:
            return OverallStatus(label)
        except ValueError:
            raise ConfigurationError(
                f"Unknown overall label '{label}' for case type "
                f"'{self.case_type.value}'."
            ) from None

    def overall_label(self, status: OverallStatus) -> str:
        for label, value in self.overall_labels.items():
            if value is status:
                return label
        return status.value


def _stage_labels(pending: str) -> dict[str, StageStatus]:
    return {
        pending: StageStatus.PENDING,
        "approved": StageStatus.APPROVED,
        "not_approved": StageStatus.REJECTED,
    }


def _overall_labels(
    in_progress: str,
    approved: str = "approved",
    rejected: str = "not_approved",
) -> dict[str, OverallStatus]:
    return {
        in_progress: OverallStatus.IN_PROGRESS,
        approved: OverallStatus.APPROVED,
        rejected: OverallStatus.REJECTED,
    }


_ADVISOR = "Advisor"
_ACADEMIC_AFFAIRS = "Academic Affairs Office"

CASE_TYPES: dict[CaseType, CaseTypeDefinition] = {
    CaseType.AWARD: CaseTypeDefinition(
        case_type=CaseType.AWARD,
        rule=CombinationRule.SEQUENTIAL,
        stages=(
            StageDefinition("advisor", _ADVISOR, "Advisor approval", _stage_labels("pending_approval")),
            StageDefinition("admin", _ACADEMIC_AFFAIRS, "Academic affairs approval", _stage_labels("pending_approval")),
        ),
        overall_labels=_overall_labels("in_review"),
        id_prefix="AW",
        category="award_review",
    ),
    CaseType.PUNISHMENT: CaseTypeDefinition(
        case_type=CaseType.PUNISHMENT,
        rule=CombinationRule.SEQUENTIAL,
        stages=(
            StageDefinition("admin", _ACADEMIC_AFFAIRS, "Academic affairs approval", _stage_labels("pending_approval")),
        ),
        overall_labels=_overall_labels("in_review", "effective", "revoked"),
        id_prefix="PU",
        category="punishment_notice",
    ),
    CaseType.APPEAL: CaseTypeDefinition(
        case_type=CaseType.APPEAL,
        rule=CombinationRule.SEQUENTIAL,
        stages=(
            StageDefinition("advisor", _ADVISOR, "Advisor hearing", _stage_labels("pending_hearing")),
            StageDefinition("admin", _ACADEMIC_AFFAIRS, "Academic affairs hearing", _stage_labels("pending_hearing")),
        ),
        overall_labels=_overall_labels("under_hearing"),
        id_prefix="AP",
        category="appeal_hearing",
    ),
    CaseType.STATUS_CHANGE: CaseTypeDefinition(
        case_type=CaseType.STATUS_CHANGE,
        rule=CombinationRule.SEQUENTIAL,
        stages=(
            StageDefinition("advisor", _ADVISOR, "Advisor review", _stage_labels("pending_review")),
            StageDefinition("admin", _ACADEMIC_AFFAIRS, "Academic affairs review", _stage_labels("pending_review")),
        ),
        overall_labels=_overall_labels("in_review"),
        id_prefix="SC",
        category="status_change",
    ),
    CaseType.LEAVE_SCHOOL: CaseTypeDefinition(
        case_type=CaseType.LEAVE_SCHOOL,
        rule=CombinationRule.PARALLEL_AND,
        stages=(
            StageDefinition("dormitory", "Dormitory Office", "Dormitory review", _stage_labels("pending_review")),
            StageDefinition("library", "Library", "Library review", _stage_labels("pending_review")),
            StageDefinition("finance", "Finance Office", "Finance review", _stage_labels("pending_review")),
            StageDefinition("admin", _ACADEMIC_AFFAIRS, "Academic affairs review", _stage_labels("pending_review")),
        ),
        overall_labels=_overall_labels("in_review"),
        id_prefix="LS",
        category="leave_school_review",
    ),
}


def get_definition(
    case_type: CaseType | str,
    registry: Mapping[CaseType, CaseTypeDefinition] | None = None,
) -> CaseTypeDefinition:
    """
    Look up the definition of ``case_type``.

    Raises:
        ConfigurationError: If the case type is unknown.
    """
    registry = CASE_TYPES if registry is None else registry
    try:
        return registry[CaseType(case_type)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"Unknown case type '{case_type}'.") from None


# ── Combination ─────────────────────────────────────────────────────


def _combine_sequential(ordered: list[StageStatus]) -> OverallStatus:
    # Every stage is visited: a rejection anywhere rejects the case even
    # if an earlier stage is still pending.
    all_approved = True
    for status in ordered:
        if status is StageStatus.REJECTED:
            return OverallStatus.REJECTED
        if status is not StageStatus.APPROVED:
            all_approved = False
    return OverallStatus.APPROVED if all_approved else OverallStatus.IN_PROGRESS


def _combine_parallel_and(ordered: list[StageStatus]) -> OverallStatus:
    present = set(ordered)
    if StageStatus.REJECTED in present:
        return OverallStatus.REJECTED
    if present == {StageStatus.APPROVED}:
        return OverallStatus.APPROVED
    return OverallStatus.IN_PROGRESS


COMBINERS: dict[CombinationRule, Callable[[list[StageStatus]], OverallStatus]] = {
    CombinationRule.SEQUENTIAL: _combine_sequential,
    CombinationRule.PARALLEL_AND: _combine_parallel_and,
}


def ordered_statuses(
    definition: CaseTypeDefinition,
    stage_statuses: Mapping[str, StageStatus],
) -> list[StageStatus]:
    """
    Return the statuses in declared stage order, ``PENDING`` for missing
    stages.

    Raises:
        ConfigurationError: If ``stage_statuses`` names an undeclared stage.
    """
    for name in stage_statuses:
        definition.stage(name)
    return [
        StageStatus(stage_statuses.get(name, StageStatus.PENDING))
        for name in definition.stage_names
    ]


def combine(
    case_type: CaseType | str,
    stage_statuses: Mapping[str, StageStatus],
) -> OverallStatus:
    """
    Derive the overall status of a case purely from its stage map.

    Both rules obey the same law: ``APPROVED`` iff every declared stage is
    approved, ``REJECTED`` iff any stage is rejected, else ``IN_PROGRESS``.
    """
    definition = get_definition(case_type)
    return COMBINERS[definition.rule](ordered_statuses(definition, stage_statuses))


def check_stage_order(
    case_type: CaseType | str,
    before: Mapping[str, StageStatus],
    after: Mapping[str, StageStatus],
) -> None:
    """
    Reject sequential updates that move a stage out of ``PENDING`` while
    an earlier stage is not yet approved.

    Only stages that change in this update are checked, so a record that
    is already out of order does not block unrelated updates.  Parallel
    case types have no ordering and always pass.

    Raises:
        InvalidTransition: On an out-of-order stage update.
    """
    definition = get_definition(case_type)
    if definition.rule is not CombinationRule.SEQUENTIAL:
        return

    statuses = ordered_statuses(definition, after)
    for index, stage in enumerate(definition.stages):
        new = statuses[index]
        old = StageStatus(before.get(stage.name, StageStatus.PENDING))
        if new is old or new is StageStatus.PENDING:
            continue
        for earlier, earlier_status in zip(definition.stages[:index], statuses[:index]):
            if earlier_status is not StageStatus.APPROVED:
                raise InvalidTransition(
                    current=old.value,
                    target=new.value,
                    reason=(
                        f"stage '{stage.name}' requires '{earlier.name}' "
                        f"to be approved first"
                    ),
                )


# ── Startup validation ──────────────────────────────────────────────


def validate_registry(
    registry: Mapping[CaseType, CaseTypeDefinition] | None = None,
) -> None:
    """
    Fail fast on a malformed case-type table.

    Raises:
        ConfigurationError: Describing the first problem found.
    """
    registry = CASE_TYPES if registry is None else registry
    for case_type, definition in registry.items():
        if definition.case_type is not case_type:
            raise ConfigurationError(
                f"Registry key '{case_type.value}' holds the definition of "
                f"'{definition.case_type.value}'."
            )
        if definition.rule not in COMBINERS:
            raise ConfigurationError(
                f"No combiner for rule '{definition.rule}' ({case_type.value})."
            )
        if not definition.stages:
            raise ConfigurationError(f"Case type '{case_type.value}' declares no stages.")
        names = definition.stage_names
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate stage names in '{case_type.value}'.")
        for stage in definition.stages:
            _require_all(StageStatus, stage.labels.values(), f"{case_type.value}.{stage.name}")
        _require_all(OverallStatus, definition.overall_labels.values(), f"{case_type.value}.overall")


def _require_all(enum_cls: type[Enum], values: Iterable[Enum], where: str) -> None:
    missing = set(enum_cls) - set(values)
    if missing:
        raise ConfigurationError(
            f"Labels for {where} do not cover: "
            f"{', '.join(sorted(m.value for m in missing))}."
        )
