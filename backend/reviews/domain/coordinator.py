"""
reviews.domain.coordinator — Workflow coordinator.

Orchestrates one review update::

    load before ──▶ after = before + update ──▶ CAS write(expected=before.version)
         ▲                                             │
         └──────────── rejected (≤ max_attempts) ──────┤
                                                       ▼ accepted
                        diff(before, after) ──▶ compose ──▶ dispatch

Guarantees
----------
* The diff always runs against the ``before`` that the successful write
  was checked against, so concurrent updates on one case can neither
  double-notify nor lose a transition.
* The overall status written is ``combine(after.stages)``; whatever
  overall value a caller supplies is ignored.
* Each transition of a call yields at most one notification.
* A notification that fails to save (including a duplicate notice ID)
  never undoes the case update; it is logged and reported in
  ``UpdateResult.dispatch_failures``.

The coordinator performs no I/O of its own: storage is reached through
the ``SnapshotStore`` and ``NotificationStore`` ports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol
from uuid import uuid4

from core.constants import DEFAULT_MAX_ATTEMPTS, NOTICE_ID_PREFIX, NOTICE_ID_SUFFIX_LENGTH
from core.domain.exceptions import (
    Conflict,
    NotFound,
    PartialDispatchFailure,
    StorageConflict,
)

from .composer import NotificationComposer
from .sequence import SequenceGenerator, default_sequence
from .snapshots import CaseSnapshot, CaseUpdate, NotificationEvent, Transition
from .stages import CaseType, StageStatus, check_stage_order, combine, get_definition
from .transitions import diff

logger = logging.getLogger(__name__)


# ── Ports ───────────────────────────────────────────────────────────


class SnapshotStore(Protocol):
    def get(self, case_id: str) -> CaseSnapshot | None:
        """Return the stored snapshot (with its version) or ``None``."""
        ...

    def put(self, case_id: str, snapshot: CaseSnapshot, expected_version: int) -> bool:
        """
        Write ``snapshot`` if the stored version equals ``expected_version``
        (0 = the case must not exist yet).  Returns ``False`` when the
        version check fails.
        """
        ...


class NotificationStore(Protocol):
    def save(self, event: NotificationEvent) -> None:
        ...


# ── Result ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class UpdateResult:
    """
    Outcome of ``WorkflowCoordinator.apply_update``.

    ``accepted`` is ``False`` only when every write attempt was rejected;
    ``error`` then holds the ``StorageConflict`` for the caller to raise.
    """

    accepted: bool
    snapshot: CaseSnapshot | None
    transitions: tuple[Transition, ...] = ()
    notifications: tuple[NotificationEvent, ...] = ()
    error: StorageConflict | None = None
    dispatch_failures: tuple[PartialDispatchFailure, ...] = ()


# ── Coordinator ─────────────────────────────────────────────────────


class WorkflowCoordinator:
    def __init__(
        self,
        snapshots: SnapshotStore,
        notifications: NotificationStore,
        *,
        composer: NotificationComposer | None = None,
        sequence: SequenceGenerator | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        enforce_stage_order: bool = False,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._snapshots = snapshots
        self._notifications = notifications
        self._composer = composer or NotificationComposer()
        self._sequence = sequence or default_sequence
        self._max_attempts = max_attempts
        self._enforce_stage_order = enforce_stage_order

    # ── Creation ────────────────────────────────────────────────────

    def register_case(
        self,
        case_type: CaseType | str,
        subject_id: str,
        *,
        case_id: str | None = None,
        stages: Mapping[str, StageStatus] | None = None,
        reviewers: Mapping[str, str] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> CaseSnapshot:
        """
        Store a new case.  Creation never produces notifications.

        Raises:
            ConfigurationError: Unknown case type or stage.
            Conflict:           ``case_id`` is already taken.
        """
        definition = get_definition(case_type)
        stages = dict(stages or {})
        snapshot = CaseSnapshot(
            case_id=case_id or self._sequence.next(definition.id_prefix),
            case_type=definition.case_type,
            subject_id=subject_id,
            stages={name: stages.get(name, StageStatus.PENDING) for name in definition.stage_names}
            | stages,
            reviewers=reviewers or {},
            payload=payload or {},
        )
        snapshot = snapshot.with_overall(combine(snapshot.case_type, snapshot.stages))

        if not self._snapshots.put(snapshot.case_id, snapshot, expected_version=0):
            raise Conflict(f"Case {snapshot.case_id} already exists.")

        logger.info(
            "Registered %s case %s for subject %s",
            snapshot.case_type.value,
            snapshot.case_id,
            subject_id,
        )
        return snapshot.with_version(1)

    # ── Update ──────────────────────────────────────────────────────

    def apply_update(
        self,
        case_id: str,
        case_type: CaseType | str,
        update: CaseUpdate,
    ) -> UpdateResult:
        """
        Apply ``update`` to case ``case_id`` and emit its notifications.

        Raises:
            NotFound:           The case does not exist (or is another type).
            ConfigurationError: Unknown case type or stage.
            InvalidTransition:  Out-of-order stage update, when enforced.
        """
        definition = get_definition(case_type)

        for attempt in range(1, self._max_attempts + 1):
            before = self._load(case_id, definition.case_type)
            after = before.with_update(update)
            after = after.with_overall(combine(after.case_type, after.stages))
            if self._enforce_stage_order:
                check_stage_order(after.case_type, before.stages, after.stages)

            if self._snapshots.put(case_id, after, expected_version=before.version):
                after = after.with_version(before.version + 1)
                break
            logger.info(
                "Version conflict on case %s (attempt %d/%d, expected v%d); retrying",
                case_id,
                attempt,
                self._max_attempts,
                before.version,
            )
        else:
            error = StorageConflict(case_id=case_id, attempts=self._max_attempts)
            logger.warning("Giving up on case %s: %s", case_id, error)
            return UpdateResult(accepted=False, snapshot=None, error=error)

        transitions = diff(before, after)
        events = []
        for transition in transitions:
            event = self._composer.compose(transition, after)
            if event is not None:
                events.append(event)
        dispatched, failures = self._dispatch(events)

        logger.info(
            "Applied update to %s case %s: %d transition(s), %d notification(s), %d dispatch failure(s)",
            definition.case_type.value,
            case_id,
            len(transitions),
            len(dispatched),
            len(failures),
        )
        return UpdateResult(
            accepted=True,
            snapshot=after,
            transitions=tuple(transitions),
            notifications=tuple(dispatched),
            dispatch_failures=tuple(failures),
        )

    # ── Internals ───────────────────────────────────────────────────

    def _load(self, case_id: str, case_type: CaseType) -> CaseSnapshot:
        before = self._snapshots.get(case_id)
        if before is None:
            raise NotFound(f"Case {case_id} does not exist.")
        if before.case_type is not case_type:
            raise NotFound(f"Case {case_id} is not a {case_type.value} case.")
        return before

    def _next_notice_id(self) -> str:
        # Sequence IDs repeat across worker processes; the random suffix
        # keeps notice IDs unique.
        suffix = uuid4().hex[:NOTICE_ID_SUFFIX_LENGTH]
        return f"{self._sequence.next(NOTICE_ID_PREFIX)}{suffix}"

    def _dispatch(
        self,
        events: list[NotificationEvent],
    ) -> tuple[list[NotificationEvent], list[PartialDispatchFailure]]:
        dispatched: list[NotificationEvent] = []
        failures: list[PartialDispatchFailure] = []
        for event in events:
            event = event.with_notice_id(self._next_notice_id())
            try:
                self._notifications.save(event)
            except Exception as exc:
                # The case update is already committed and must stand.
                logger.exception(
                    "Failed to save notification %s for case %s",
                    event.notice_id,
                    event.case_id,
                )
                failures.append(PartialDispatchFailure(event, exc))
                continue
            dispatched.append(event)
        return dispatched, failures
