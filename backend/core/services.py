"""
Core app services — **Service Layer**.

Contains the notification inbox logic.  Views delegate all business
logic to the service classes defined here, keeping views thin and
ensuring testability.

Recipients are student IDs; the authenticated user's username is the
student ID, so an inbox is always scoped to ``user.get_username()``.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db.models import QuerySet
from django.utils import timezone

from core.domain.transactions import get_or_not_found

logger = logging.getLogger(__name__)


class NotificationInboxService:
    """
    Handles listing and marking notifications as read for a given user.
    """

    def __init__(self, user: Any) -> None:
        self.user = user

    @property
    def recipient_id(self) -> str:
        return self.user.get_username()

    def list_notifications(self, *, unread_only: bool = False) -> QuerySet:
        """Return the user's notifications, most recent first."""
        from core.models import Notification

        qs = Notification.objects.filter(recipient_id=self.recipient_id)
        if unread_only:
            qs = qs.filter(is_read=False)
        return qs.order_by("-published_at", "-id")

    def unread_count(self) -> int:
        return self.list_notifications(unread_only=True).count()

    def mark_as_read(self, notification_id: int) -> Any:
        """
        Mark a single notification as read.

        Raises:
            NotFound: If the notification does not exist or belongs to
                      someone else.
        """
        from core.models import Notification

        notification = get_or_not_found(
            Notification,
            notification_id,
            recipient_id=self.recipient_id,
        )
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=["is_read", "read_at", "updated_at"])
        return notification

    def mark_all_as_read(self) -> int:
        """Mark every unread notification as read; returns how many changed."""
        now = timezone.now()
        updated = self.list_notifications(unread_only=True).update(
            is_read=True,
            read_at=now,
            updated_at=now,
        )
        logger.info("Marked %d notification(s) read for %s", updated, self.recipient_id)
        return updated
