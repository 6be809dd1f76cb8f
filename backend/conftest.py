"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``student_client`` helper returning a client authenticated as a student.
  - ``memory_coordinator`` — a ``WorkflowCoordinator`` over in-memory stores.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from rest_framework.test import APIClient

from reviews.domain.composer import NotificationComposer
from reviews.domain.coordinator import WorkflowCoordinator
from reviews.domain.memory import InMemoryNotificationStore, InMemorySnapshotStore
from reviews.domain.sequence import SequenceGenerator

FIXED_NOW = datetime(2024, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Students log in with their student ID as username, which is also the
    recipient ID used on notifications.

    Usage::

        def test_something(create_user):
            user = create_user(username="2023001")
    """
    from django.contrib.auth import get_user_model

    User = get_user_model()
    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        is_active: bool = True,
        **kwargs,
    ):
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"20230{_counter:03d}"
        return User.objects.create_user(
            username=username,
            password=password,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def student_client(create_user):
    """
    Returns a helper that creates a user and an ``APIClient`` already
    authenticated as that user.

    Usage::

        def test_inbox(student_client):
            client, user = student_client(username="2023001")
            resp = client.get("/api/core/notifications/")
    """

    def _make(*, username: str | None = None, **user_kwargs):
        user = create_user(username=username, **user_kwargs)
        client = APIClient()
        client.force_authenticate(user=user)
        return client, user

    return _make


@pytest.fixture()
def snapshot_store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture()
def notification_store() -> InMemoryNotificationStore:
    return InMemoryNotificationStore()


@pytest.fixture()
def memory_coordinator(snapshot_store, notification_store) -> WorkflowCoordinator:
    """Coordinator over in-memory stores with a frozen clock."""
    return WorkflowCoordinator(
        snapshot_store,
        notification_store,
        composer=NotificationComposer(clock=lambda: FIXED_NOW),
        sequence=SequenceGenerator(clock=lambda: FIXED_NOW),
    )
