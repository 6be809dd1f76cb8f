"""
Workflow coordinator tests over the in-memory stores.

Covers the end-to-end review scenarios per case type, idempotent
re-application, bounded compare-and-swap retries, concurrent reviewers
and notification dispatch failures.
"""

from __future__ import annotations

import threading

import pytest

from core.domain.exceptions import (
    Conflict,
    InvalidTransition,
    NotFound,
    PartialDispatchFailure,
    StorageConflict,
)
from reviews.domain.coordinator import WorkflowCoordinator
from reviews.domain.memory import InMemoryNotificationStore, InMemorySnapshotStore
from reviews.domain.snapshots import CaseSnapshot, CaseUpdate
from reviews.domain.stages import OverallStatus, StageStatus

P, A, R = StageStatus.PENDING, StageStatus.APPROVED, StageStatus.REJECTED
STUDENT = "2023001"


def _approve(stage: str, reviewer: str | None = None) -> CaseUpdate:
    return CaseUpdate(stages={stage: A}, reviewers={stage: reviewer} if reviewer else {})


def _reject(stage: str) -> CaseUpdate:
    return CaseUpdate(stages={stage: R})


class _RejectingSnapshotStore(InMemorySnapshotStore):
    """Accepts creation, then rejects every versioned write."""

    def put(self, case_id, snapshot, expected_version):
        if expected_version == 0:
            return super().put(case_id, snapshot, expected_version)
        return False


class _RacingSnapshotStore(InMemorySnapshotStore):
    """
    Lets a competing update land just before the first versioned write,
    so that write loses the version check.
    """

    def __init__(self, competing_update: CaseUpdate):
        super().__init__()
        self._competing_update = competing_update
        self.raced = False

    def put(self, case_id, snapshot, expected_version):
        if expected_version > 0 and not self.raced:
            self.raced = True
            current = self.get(case_id)
            super().put(case_id, current.with_update(self._competing_update), current.version)
        return super().put(case_id, snapshot, expected_version)


class _FailingNotificationStore(InMemoryNotificationStore):
    def __init__(self, fail_titles: set[str]):
        super().__init__()
        self._fail_titles = fail_titles

    def save(self, event):
        if event.title in self._fail_titles:
            raise RuntimeError("notification table unavailable")
        super().save(event)


# ════════════════════════════════════════════════════════════════════
#  Registration
# ════════════════════════════════════════════════════════════════════


class TestRegisterCase:

    def test_new_case_starts_pending_without_notifications(
        self, memory_coordinator, snapshot_store, notification_store,
    ):
        snapshot = memory_coordinator.register_case("award", STUDENT, payload={"award_name": "Merit"})

        assert snapshot.case_id.startswith("AW")
        assert snapshot.version == 1
        assert dict(snapshot.stages) == {"advisor": P, "admin": P}
        assert snapshot.overall is OverallStatus.IN_PROGRESS
        assert snapshot_store.get(snapshot.case_id) == snapshot
        assert notification_store.events == []

    def test_initial_stages_are_respected(self, memory_coordinator):
        snapshot = memory_coordinator.register_case("punishment", STUDENT, case_id="PU1", stages={"admin": A})
        assert snapshot.overall is OverallStatus.APPROVED

    def test_duplicate_case_id_conflicts(self, memory_coordinator):
        memory_coordinator.register_case("appeal", STUDENT, case_id="AP1")
        with pytest.raises(Conflict):
            memory_coordinator.register_case("appeal", STUDENT, case_id="AP1")


# ════════════════════════════════════════════════════════════════════
#  Scenarios
# ════════════════════════════════════════════════════════════════════


class TestReviewScenarios:

    def test_award_advisor_then_admin_approval(self, memory_coordinator, notification_store):
        case = memory_coordinator.register_case("award", STUDENT, payload={"award_name": "Merit"})

        first = memory_coordinator.apply_update(case.case_id, "award", _approve("advisor", "T1001"))
        assert first.accepted
        assert first.snapshot.overall is OverallStatus.IN_PROGRESS
        assert [n.title for n in first.notifications] == ["Award application approved"]
        assert first.notifications[0].source_actor == "T1001"

        second = memory_coordinator.apply_update(case.case_id, "award", _approve("admin", "ADM01"))
        assert second.snapshot.overall is OverallStatus.APPROVED
        assert second.snapshot.version == 3
        assert [n.title for n in second.notifications] == [
            "Award application approved",
            "Award application granted",
        ]
        assert len(notification_store.for_recipient(STUDENT)) == 3

    def test_award_rejected_by_advisor(self, memory_coordinator):
        case = memory_coordinator.register_case("award", STUDENT)
        result = memory_coordinator.apply_update(case.case_id, "award", _reject("advisor"))
        assert result.snapshot.overall is OverallStatus.REJECTED
        assert [n.title for n in result.notifications] == [
            "Award application not approved",
            "Award application not granted",
        ]

    def test_punishment_takes_effect_with_a_single_notice(self, memory_coordinator):
        case = memory_coordinator.register_case("punishment", STUDENT, payload={"punishment_type": "Warning"})
        result = memory_coordinator.apply_update(case.case_id, "punishment", _approve("admin"))
        assert [t.scope for t in result.transitions] == ["stage:admin", "overall"]
        assert [n.title for n in result.notifications] == ["Punishment notice"]

    def test_leave_school_completes_after_every_office(self, memory_coordinator):
        case = memory_coordinator.register_case("leave_school", STUDENT)
        offices = ["library", "finance", "dormitory", "admin"]
        results = [
            memory_coordinator.apply_update(case.case_id, "leave_school", _approve(office))
            for office in offices
        ]
        assert [len(r.notifications) for r in results] == [1, 1, 1, 2]
        assert results[-1].notifications[-1].title == "Leave-school application approved"
        assert results[-1].snapshot.overall is OverallStatus.APPROVED

    def test_appeal_rejected_at_final_hearing(self, memory_coordinator):
        case = memory_coordinator.register_case("appeal", STUDENT)
        memory_coordinator.apply_update(case.case_id, "appeal", _approve("advisor"))
        result = memory_coordinator.apply_update(case.case_id, "appeal", _reject("admin"))
        assert [n.title for n in result.notifications] == ["Appeal not approved", "Appeal final result"]

    def test_payload_is_merged(self, memory_coordinator, snapshot_store):
        case = memory_coordinator.register_case("status_change", STUDENT, payload={"change_type": "Suspension"})
        memory_coordinator.apply_update(
            case.case_id, "status_change", CaseUpdate(payload={"advisor_opinion": "Agreed"}),
        )
        stored = snapshot_store.get(case.case_id)
        assert dict(stored.payload) == {"change_type": "Suspension", "advisor_opinion": "Agreed"}

    def test_notice_ids_are_assigned_on_dispatch(self, memory_coordinator, notification_store):
        case = memory_coordinator.register_case("award", STUDENT, case_id="AW1")
        memory_coordinator.apply_update(case.case_id, "award", _reject("advisor"))
        notice_ids = [e.notice_id for e in notification_store.events]
        assert all(n.startswith("N20240301093000") for n in notice_ids)
        # N + timestamp + counter + random hex suffix
        assert all(len(n) == 1 + 14 + 3 + 8 for n in notice_ids)
        assert len(set(notice_ids)) == 2


class TestIdempotenceAndValidation:

    def test_reapplying_an_update_sends_nothing_new(self, memory_coordinator, notification_store):
        case = memory_coordinator.register_case("award", STUDENT)
        memory_coordinator.apply_update(case.case_id, "award", _approve("advisor"))
        sent = len(notification_store.events)

        again = memory_coordinator.apply_update(case.case_id, "award", _approve("advisor"))
        assert again.accepted
        assert again.transitions == ()
        assert again.notifications == ()
        assert len(notification_store.events) == sent

    def test_stale_stored_overall_is_recomputed(self, memory_coordinator, snapshot_store):
        stale = CaseSnapshot(
            case_id="AW9",
            case_type="award",
            subject_id=STUDENT,
            stages={"advisor": P, "admin": P},
            overall=OverallStatus.APPROVED,
        )
        snapshot_store.put("AW9", stale, expected_version=0)

        result = memory_coordinator.apply_update("AW9", "award", _approve("advisor"))
        assert result.snapshot.overall is OverallStatus.IN_PROGRESS
        assert snapshot_store.get("AW9").overall is OverallStatus.IN_PROGRESS

    def test_unknown_case(self, memory_coordinator):
        with pytest.raises(NotFound):
            memory_coordinator.apply_update("AW404", "award", _approve("advisor"))

    def test_case_of_another_type(self, memory_coordinator):
        case = memory_coordinator.register_case("appeal", STUDENT)
        with pytest.raises(NotFound):
            memory_coordinator.apply_update(case.case_id, "award", _approve("advisor"))

    def test_max_attempts_must_be_positive(self, snapshot_store, notification_store):
        with pytest.raises(ValueError):
            WorkflowCoordinator(snapshot_store, notification_store, max_attempts=0)

    def test_stage_order_is_enforced_when_configured(self, snapshot_store, notification_store):
        coordinator = WorkflowCoordinator(snapshot_store, notification_store, enforce_stage_order=True)
        case = coordinator.register_case("award", STUDENT)

        with pytest.raises(InvalidTransition):
            coordinator.apply_update(case.case_id, "award", _approve("admin"))
        assert snapshot_store.get(case.case_id).version == 1
        assert notification_store.events == []

    def test_stage_order_is_not_enforced_by_default(self, memory_coordinator):
        case = memory_coordinator.register_case("award", STUDENT)
        result = memory_coordinator.apply_update(case.case_id, "award", _approve("admin"))
        assert result.accepted


# ════════════════════════════════════════════════════════════════════
#  Concurrency
# ════════════════════════════════════════════════════════════════════


class TestConcurrency:

    def test_conflicts_exhaust_bounded_retries(self, notification_store):
        store = _RejectingSnapshotStore()
        coordinator = WorkflowCoordinator(store, notification_store, max_attempts=3)
        case = coordinator.register_case("award", STUDENT)

        result = coordinator.apply_update(case.case_id, "award", _approve("advisor"))

        assert not result.accepted
        assert result.snapshot is None
        assert isinstance(result.error, StorageConflict)
        assert result.error.attempts == 3
        assert notification_store.events == []
        assert store.get(case.case_id).stage("advisor") is P

    def test_lost_race_is_retried_against_fresh_state(self, notification_store):
        store = _RacingSnapshotStore(competing_update=_approve("advisor"))
        coordinator = WorkflowCoordinator(store, notification_store)
        case = coordinator.register_case("award", STUDENT)

        result = coordinator.apply_update(case.case_id, "award", _approve("admin"))

        assert result.accepted
        assert dict(result.snapshot.stages) == {"advisor": A, "admin": A}
        # The advisor change belongs to the competing writer.
        assert [t.scope for t in result.transitions] == ["stage:admin", "overall"]
        assert store.get(case.case_id).version == 3

    def test_parallel_offices_each_land_exactly_once(self):
        store = InMemorySnapshotStore()
        notifications = InMemoryNotificationStore()
        offices = ["dormitory", "library", "finance", "admin"]
        coordinator = WorkflowCoordinator(store, notifications, max_attempts=len(offices))
        case = coordinator.register_case("leave_school", STUDENT)

        barrier = threading.Barrier(len(offices))
        results = []
        lock = threading.Lock()

        def review(office):
            barrier.wait()
            result = coordinator.apply_update(case.case_id, "leave_school", _approve(office))
            with lock:
                results.append(result)

        threads = [threading.Thread(target=review, args=(office,)) for office in offices]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(r.accepted for r in results)
        final = store.get(case.case_id)
        assert final.overall is OverallStatus.APPROVED
        assert final.version == 1 + len(offices)

        titles = [e.title for e in notifications.events]
        assert len(titles) == len(offices) + 1
        assert titles.count("Leave-school application approved") == 1


# ════════════════════════════════════════════════════════════════════
#  Dispatch failures
# ════════════════════════════════════════════════════════════════════


class TestDispatchFailures:

    def test_failed_notification_keeps_the_update(self, snapshot_store):
        notifications = _FailingNotificationStore({"Award application granted"})
        coordinator = WorkflowCoordinator(snapshot_store, notifications)
        case = coordinator.register_case("award", STUDENT, stages={"advisor": A})

        result = coordinator.apply_update(case.case_id, "award", _approve("admin"))

        assert result.accepted
        assert snapshot_store.get(case.case_id).overall is OverallStatus.APPROVED
        assert [n.title for n in result.notifications] == ["Award application approved"]
        [failure] = result.dispatch_failures
        assert isinstance(failure, PartialDispatchFailure)
        assert failure.event.title == "Award application granted"
        assert isinstance(failure.cause, RuntimeError)
