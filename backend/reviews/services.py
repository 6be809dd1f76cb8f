"""
Reviews app Service Layer.

This module is the **single source of truth** for wiring the review
workflow engine (``reviews.domain``) to Django.  Views must remain thin:
validate input via serializers, call a service method, and return the
result wrapped in a DRF ``Response``.

Architecture
------------
- ``ReviewCaseStore``          — ``SnapshotStore`` port over ``ReviewCase``
                                 (version-checked ``UPDATE``).
- ``NotificationRecordStore``  — ``NotificationStore`` port over
                                 ``core.models.Notification``.
- ``get_coordinator``          — Process-wide ``WorkflowCoordinator`` built
                                 from ``settings.REVIEW_WORKFLOW``.
- ``ReviewCaseService``        — Register, read and update cases.
- ``CaseTypeCatalogService``   — Read-only view of the stage model.

Update flow
-----------
  PATCH /api/reviews/cases/{id}/
    → ReviewCaseService.apply_update
      → WorkflowCoordinator.apply_update
          load (ReviewCaseStore.get)
          CAS write (ReviewCaseStore.put) — retried on version conflict
          diff → compose → NotificationRecordStore.save
    ← UpdateResult (snapshot + notifications)
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from django.conf import settings
from django.db import IntegrityError
from django.utils import timezone

from core.constants import DEFAULT_MAX_ATTEMPTS, DEFAULT_NOTICE_PRIORITY
from core.domain.exceptions import NotFound
from core.domain.notifications import NotificationService
from core.domain.transactions import compare_and_swap, run_in_atomic

from .domain.composer import NotificationComposer
from .domain.coordinator import UpdateResult, WorkflowCoordinator
from .domain.snapshots import CaseSnapshot, CaseUpdate, NotificationEvent
from .domain.stages import CaseType, get_definition
from .models import ReviewCase

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Store adapters
# ═══════════════════════════════════════════════════════════════════


def _to_snapshot(row: ReviewCase) -> CaseSnapshot:
    return CaseSnapshot(
        case_id=row.case_id,
        case_type=row.case_type,
        subject_id=row.subject_id,
        stages=row.stages,
        overall=row.overall_status,
        reviewers=row.reviewers,
        payload=row.payload,
        version=row.version,
    )


def _columns(snapshot: CaseSnapshot) -> dict[str, Any]:
    return {
        "case_type": snapshot.case_type.value,
        "subject_id": snapshot.subject_id,
        "stages": {name: status.value for name, status in snapshot.stages.items()},
        "overall_status": snapshot.overall.value,
        "reviewers": dict(snapshot.reviewers),
        "payload": dict(snapshot.payload),
    }


class ReviewCaseStore:
    """``SnapshotStore`` backed by the ``ReviewCase`` table."""

    def get(self, case_id: str) -> CaseSnapshot | None:
        row = ReviewCase.objects.filter(pk=case_id).first()
        return _to_snapshot(row) if row is not None else None

    def put(self, case_id: str, snapshot: CaseSnapshot, expected_version: int) -> bool:
        if expected_version == 0:
            return self._insert(case_id, snapshot)
        return compare_and_swap(
            ReviewCase,
            pk=case_id,
            expected_version=expected_version,
            values=_columns(snapshot),
        )

    @staticmethod
    def _insert(case_id: str, snapshot: CaseSnapshot) -> bool:
        try:
            run_in_atomic(
                ReviewCase.objects.create,
                case_id=case_id,
                version=1,
                **_columns(snapshot),
            )
        except IntegrityError:
            return False
        return True


class NotificationRecordStore:
    """``NotificationStore`` backed by ``core.models.Notification``."""

    def save(self, event: NotificationEvent) -> None:
        NotificationService.create(event)


# ═══════════════════════════════════════════════════════════════════
#  Coordinator wiring
# ═══════════════════════════════════════════════════════════════════

_coordinator: WorkflowCoordinator | None = None
_coordinator_lock = threading.Lock()


def build_coordinator() -> WorkflowCoordinator:
    """Build a coordinator from ``settings.REVIEW_WORKFLOW``."""
    config = getattr(settings, "REVIEW_WORKFLOW", {})
    return WorkflowCoordinator(
        ReviewCaseStore(),
        NotificationRecordStore(),
        composer=NotificationComposer(
            priority=config.get("NOTICE_PRIORITY", DEFAULT_NOTICE_PRIORITY),
            clock=timezone.now,
        ),
        max_attempts=config.get("MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
        enforce_stage_order=config.get("ENFORCE_STAGE_ORDER", False),
    )


def get_coordinator() -> WorkflowCoordinator:
    global _coordinator
    with _coordinator_lock:
        if _coordinator is None:
            _coordinator = build_coordinator()
        return _coordinator


def reset_coordinator() -> None:
    """Drop the cached coordinator (after a settings change)."""
    global _coordinator
    with _coordinator_lock:
        _coordinator = None


# ═══════════════════════════════════════════════════════════════════
#  Case service
# ═══════════════════════════════════════════════════════════════════


class ReviewCaseService:
    """
    Registers cases, reads them, and routes review updates through the
    workflow coordinator.
    """

    @staticmethod
    def get_case(case_id: str) -> CaseSnapshot:
        """
        Raises:
            NotFound: If the case does not exist.
        """
        snapshot = ReviewCaseStore().get(case_id)
        if snapshot is None:
            raise NotFound(f"Case {case_id} does not exist.")
        return snapshot

    @staticmethod
    def register_case(validated_data: dict[str, Any]) -> CaseSnapshot:
        """
        Create a new case from ``ReviewCaseCreateSerializer`` data.

        Stage statuses default to pending.  No notifications are sent
        for a newly registered case.
        """
        return get_coordinator().register_case(
            validated_data["case_type"],
            validated_data["subject_id"],
            case_id=validated_data.get("case_id") or None,
            stages=validated_data.get("stages"),
            reviewers=validated_data.get("reviewers"),
            payload=validated_data.get("payload"),
        )

    @staticmethod
    def apply_update(case_id: str, validated_data: dict[str, Any]) -> UpdateResult:
        """
        Apply a review update from ``ReviewCaseUpdateSerializer`` data.

        Returns:
            The accepted ``UpdateResult``.  Notifications that failed to
            save are logged; the update itself still stands.

        Raises:
            NotFound:          Unknown case, or case of another type.
            InvalidTransition: Out-of-order stage update (when enforced).
            StorageConflict:   Concurrent writers won every retry.
        """
        update = CaseUpdate(
            stages=validated_data.get("stages", {}),
            reviewers=validated_data.get("reviewers", {}),
            payload=validated_data.get("payload", {}),
        )
        result = get_coordinator().apply_update(case_id, validated_data["case_type"], update)
        if not result.accepted:
            raise result.error
        for failure in result.dispatch_failures:
            logger.error("Review update on %s left a notification undelivered: %s", case_id, failure)
        return result


class CaseTypeCatalogService:
    """Read-only description of the configured stage model."""

    @staticmethod
    def describe() -> list[dict[str, Any]]:
        catalog = []
        for case_type in CaseType:
            definition = get_definition(case_type)
            catalog.append({
                "case_type": case_type.value,
                "rule": definition.rule.value,
                "id_prefix": definition.id_prefix,
                "category": definition.category,
                "stages": [
                    {
                        "name": stage.name,
                        "title": stage.title,
                        "reviewer_role": stage.reviewer_role,
                        "labels": {label: status.value for label, status in stage.labels.items()},
                    }
                    for stage in definition.stages
                ],
                "overall_labels": {
                    label: status.value for label, status in definition.overall_labels.items()
                },
            })
        return catalog
