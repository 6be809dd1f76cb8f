"""
reviews.domain.snapshots — Immutable values passed through the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping

from .stages import CaseType, OverallStatus, StageStatus

OVERALL_SCOPE = "overall"
STAGE_SCOPE_PREFIX = "stage:"
SYSTEM_ACTOR = "system"


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class CaseUpdate:
    """
    A reviewer's proposed change.

    Only the keys present are changed; stages, reviewers and payload
    fields left out keep their stored values.  This lets two reviewers
    update different stages of one case without overwriting each other.
    """

    stages: Mapping[str, StageStatus] = field(default_factory=dict)
    reviewers: Mapping[str, str] = field(default_factory=dict)
    payload: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "stages",
            _freeze({name: StageStatus(status) for name, status in self.stages.items()}),
        )
        object.__setattr__(self, "reviewers", _freeze(self.reviewers))
        object.__setattr__(self, "payload", _freeze(self.payload))


@dataclass(frozen=True)
class CaseSnapshot:
    """
    One stored state of a case.

    ``overall`` is whatever the store holds; the engine never trusts it
    for diffing and recomputes it before every write.  ``version`` is the
    store version the snapshot was read at (0 = not yet stored).
    """

    case_id: str
    case_type: CaseType
    subject_id: str
    stages: Mapping[str, StageStatus] = field(default_factory=dict)
    overall: OverallStatus = OverallStatus.IN_PROGRESS
    reviewers: Mapping[str, str] = field(default_factory=dict)
    payload: Mapping[str, Any] = field(default_factory=dict)
    version: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "case_type", CaseType(self.case_type))
        object.__setattr__(self, "overall", OverallStatus(self.overall))
        object.__setattr__(
            self,
            "stages",
            _freeze({name: StageStatus(status) for name, status in self.stages.items()}),
        )
        object.__setattr__(self, "reviewers", _freeze(self.reviewers))
        object.__setattr__(self, "payload", _freeze(self.payload))

    def stage(self, name: str) -> StageStatus:
        return self.stages.get(name, StageStatus.PENDING)

    def with_update(self, update: CaseUpdate) -> CaseSnapshot:
        return replace(
            self,
            stages={**self.stages, **update.stages},
            reviewers={**self.reviewers, **update.reviewers},
            payload={**self.payload, **update.payload},
        )

    def with_overall(self, overall: OverallStatus) -> CaseSnapshot:
        return replace(self, overall=overall)

    def with_version(self, version: int) -> CaseSnapshot:
        return replace(self, version=version)

    def same_state(self, other: CaseSnapshot) -> bool:
        """True when both snapshots describe the same case state, ignoring version."""
        return replace(self, version=0) == replace(other, version=0)


@dataclass(frozen=True)
class Transition:
    """A status change detected between two snapshots of one case."""

    case_id: str
    case_type: CaseType
    scope: str
    old: StageStatus | OverallStatus
    new: StageStatus | OverallStatus

    @classmethod
    def for_stage(cls, snapshot: CaseSnapshot, name: str, old: StageStatus, new: StageStatus) -> Transition:
        return cls(snapshot.case_id, snapshot.case_type, f"{STAGE_SCOPE_PREFIX}{name}", old, new)

    @classmethod
    def for_overall(cls, snapshot: CaseSnapshot, old: OverallStatus, new: OverallStatus) -> Transition:
        return cls(snapshot.case_id, snapshot.case_type, OVERALL_SCOPE, old, new)

    @property
    def is_overall(self) -> bool:
        return self.scope == OVERALL_SCOPE

    @property
    def stage_name(self) -> str | None:
        if self.scope.startswith(STAGE_SCOPE_PREFIX):
            return self.scope[len(STAGE_SCOPE_PREFIX):]
        return None

    @property
    def template_key(self) -> str:
        """``"overall"`` or the bare stage name."""
        return self.stage_name or OVERALL_SCOPE


@dataclass(frozen=True)
class NotificationEvent:
    """
    A notification ready for dispatch.

    ``notice_id`` is ``None`` until the coordinator dispatches the event.
    """

    recipient_id: str
    title: str
    body: str
    category: str
    priority: str
    source_actor: str
    publisher: str
    case_id: str
    case_type: CaseType
    created_at: datetime
    notice_id: str | None = None

    def with_notice_id(self, notice_id: str) -> NotificationEvent:
        return replace(self, notice_id=notice_id)
