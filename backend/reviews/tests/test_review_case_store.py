"""
Integration tests for the Django-backed coordinator ports:
``ReviewCaseStore`` (versioned writes on ``ReviewCase``) and
``NotificationRecordStore`` (rows in ``core.Notification``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest import mock

from django.db import IntegrityError
from django.test import TestCase, override_settings

from core.models import Notification
from reviews.domain.coordinator import WorkflowCoordinator
from reviews.domain.sequence import SequenceGenerator
from reviews.domain.snapshots import CaseSnapshot, CaseUpdate, NotificationEvent
from reviews.domain.stages import CaseType, OverallStatus, StageStatus
from reviews.models import ReviewCase
from reviews.services import (
    NotificationRecordStore,
    ReviewCaseStore,
    build_coordinator,
    get_coordinator,
)

FIXED_NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def _snapshot(**overrides) -> CaseSnapshot:
    values = {
        "case_id": "AW20240301093000001",
        "case_type": "award",
        "subject_id": "2023001",
        "stages": {"advisor": "pending", "admin": "pending"},
        "payload": {"award_name": "Merit Scholarship"},
    }
    values.update(overrides)
    return CaseSnapshot(**values)


class TestReviewCaseStore(TestCase):

    def setUp(self):
        self.store = ReviewCaseStore()

    def test_create_only_write(self):
        self.assertTrue(self.store.put("AW20240301093000001", _snapshot(), expected_version=0))
        row = ReviewCase.objects.get(pk="AW20240301093000001")
        self.assertEqual(row.version, 1)
        self.assertEqual(row.stages, {"advisor": "pending", "admin": "pending"})
        self.assertEqual(row.payload, {"award_name": "Merit Scholarship"})

    def test_create_only_write_refuses_existing_case(self):
        self.store.put("AW20240301093000001", _snapshot(), expected_version=0)
        self.assertFalse(self.store.put("AW20240301093000001", _snapshot(), expected_version=0))
        self.assertEqual(ReviewCase.objects.count(), 1)

    def test_get_round_trips_the_snapshot(self):
        self.store.put("AW20240301093000001", _snapshot(reviewers={"advisor": "T1001"}), expected_version=0)
        loaded = self.store.get("AW20240301093000001")
        self.assertEqual(loaded.case_type, CaseType.AWARD)
        self.assertIs(loaded.stage("advisor"), StageStatus.PENDING)
        self.assertEqual(loaded.reviewers["advisor"], "T1001")
        self.assertEqual(loaded.version, 1)

    def test_get_missing_case(self):
        self.assertIsNone(self.store.get("nope"))

    def test_versioned_write_bumps_version(self):
        self.store.put("AW20240301093000001", _snapshot(), expected_version=0)
        updated = _snapshot(stages={"advisor": "approved", "admin": "pending"})
        self.assertTrue(self.store.put("AW20240301093000001", updated, expected_version=1))

        row = ReviewCase.objects.get(pk="AW20240301093000001")
        self.assertEqual(row.version, 2)
        self.assertEqual(row.stages["advisor"], "approved")

    def test_stale_version_is_rejected(self):
        self.store.put("AW20240301093000001", _snapshot(), expected_version=0)
        self.store.put("AW20240301093000001", _snapshot(), expected_version=1)

        stale = _snapshot(stages={"advisor": "rejected"})
        self.assertFalse(self.store.put("AW20240301093000001", stale, expected_version=1))
        row = ReviewCase.objects.get(pk="AW20240301093000001")
        self.assertEqual(row.version, 2)
        self.assertEqual(row.stages["advisor"], "pending")


class TestNotificationRecordStore(TestCase):

    def _event(self, notice_id: str | None = "N20240301093000001") -> NotificationEvent:
        return NotificationEvent(
            recipient_id="2023001",
            title="Award application approved",
            body="Your award application was approved.",
            category="award_review",
            priority="important",
            source_actor="T1001",
            publisher="Advisor",
            case_id="AW1",
            case_type=CaseType.AWARD,
            created_at=datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
            notice_id=notice_id,
        )

    def test_event_is_stored_as_notification(self):
        NotificationRecordStore().save(self._event())
        row = Notification.objects.get(notice_id="N20240301093000001")
        self.assertEqual(row.recipient_id, "2023001")
        self.assertEqual(row.message, "Your award application was approved.")
        self.assertEqual(row.case_type, "award")
        self.assertFalse(row.is_read)

    def test_duplicate_notice_id_is_refused(self):
        store = NotificationRecordStore()
        store.save(self._event())
        with self.assertRaises(IntegrityError):
            store.save(self._event())
        self.assertEqual(Notification.objects.count(), 1)

    def test_event_without_notice_id_is_refused(self):
        with self.assertRaises(ValueError):
            NotificationRecordStore().save(self._event(notice_id=None))


class TestDatabaseCoordinator(TestCase):

    def test_full_award_review_persists_case_and_notifications(self):
        coordinator = build_coordinator()
        case = coordinator.register_case("award", "2023001", payload={"award_name": "Merit"})

        coordinator.apply_update(case.case_id, "award", CaseUpdate(stages={"advisor": "approved"}))
        result = coordinator.apply_update(case.case_id, "award", CaseUpdate(stages={"admin": "approved"}))

        self.assertTrue(result.accepted)
        row = ReviewCase.objects.get(pk=case.case_id)
        self.assertEqual(row.overall_status, OverallStatus.APPROVED.value)
        self.assertEqual(row.version, 3)
        self.assertEqual(
            list(Notification.objects.filter(case_id=case.case_id).order_by("id").values_list("title", flat=True)),
            ["Award application approved", "Award application approved", "Award application granted"],
        )

    def _worker(self) -> WorkflowCoordinator:
        # A fresh generator per coordinator stands in for a separate
        # worker process: every counter starts at zero.
        return WorkflowCoordinator(
            ReviewCaseStore(),
            NotificationRecordStore(),
            sequence=SequenceGenerator(clock=lambda: FIXED_NOW),
        )

    def test_workers_sharing_a_clock_both_deliver(self):
        first, second = self._worker(), self._worker()
        first.register_case("award", "S1", case_id="AW1")
        second.register_case("award", "S2", case_id="AW2")

        r1 = first.apply_update("AW1", "award", CaseUpdate(stages={"advisor": "approved"}))
        r2 = second.apply_update("AW2", "award", CaseUpdate(stages={"advisor": "approved"}))

        self.assertEqual(r1.dispatch_failures, ())
        self.assertEqual(r2.dispatch_failures, ())
        self.assertNotEqual(r1.notifications[0].notice_id, r2.notifications[0].notice_id)
        self.assertEqual(Notification.objects.filter(recipient_id="S1").count(), 1)
        self.assertEqual(Notification.objects.filter(recipient_id="S2").count(), 1)

    def test_notice_id_clash_is_reported_as_undelivered(self):
        first, second = self._worker(), self._worker()
        first.register_case("award", "S1", case_id="AW1")
        second.register_case("award", "S2", case_id="AW2")

        with mock.patch("reviews.domain.coordinator.uuid4") as uuid4:
            uuid4.return_value.hex = "0" * 32
            first.apply_update("AW1", "award", CaseUpdate(stages={"advisor": "approved"}))
            result = second.apply_update("AW2", "award", CaseUpdate(stages={"advisor": "approved"}))

        self.assertTrue(result.accepted)
        self.assertEqual(result.notifications, ())
        [failure] = result.dispatch_failures
        self.assertIsInstance(failure.cause, IntegrityError)
        self.assertEqual(failure.event.recipient_id, "S2")
        # The decision itself stands.
        self.assertEqual(ReviewCase.objects.get(pk="AW2").stages["advisor"], "approved")
        self.assertEqual(Notification.objects.filter(recipient_id="S2").count(), 0)

    def test_coordinator_follows_settings(self):
        with override_settings(REVIEW_WORKFLOW={"MAX_ATTEMPTS": 5, "ENFORCE_STAGE_ORDER": True}):
            coordinator = get_coordinator()
            self.assertEqual(coordinator._max_attempts, 5)
            self.assertTrue(coordinator._enforce_stage_order)
        self.assertFalse(get_coordinator()._enforce_stage_order)
