"""
core.domain.notifications — Synchronous notification persistence.

Centralises ``Notification`` creation so the review workflow has one
consistent entry-point rather than constructing rows directly.  Message
wording is decided upstream by ``reviews.domain.composer``; this module
only stores what it is given.

Design decisions
----------------
* **Synchronous for now** — the row is written in the calling thread.
  When background delivery is needed, swap ``create`` to
  ``transaction.on_commit`` or a task queue; the signature stays.
* **Notice IDs are unique** — a second event with an already stored
  ``notice_id`` is an error, not a duplicate to skip.  The
  ``IntegrityError`` reaches the workflow coordinator, which reports the
  event as undelivered.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.create(event)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.db import transaction

if TYPE_CHECKING:
    from core.models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def create(cls, event: Any) -> Notification:
        """
        Persist one dispatched ``NotificationEvent``.

        Args:
            event: A ``reviews.domain.snapshots.NotificationEvent`` that
                   already carries its ``notice_id``.

        Returns:
            The stored ``Notification`` instance.

        Raises:
            ValueError:     If the event has not been assigned a notice ID.
            IntegrityError: If a notification with the same notice ID exists.
        """
        from core.models import Notification  # lazy: app registry

        if not event.notice_id:
            raise ValueError("Notification events must be assigned a notice_id before saving.")

        with transaction.atomic():
            notification = Notification.objects.create(
                notice_id=event.notice_id,
                recipient_id=event.recipient_id,
                title=event.title,
                message=event.body,
                category=event.category,
                priority=event.priority,
                publisher=event.publisher,
                source_actor=event.source_actor,
                case_id=event.case_id,
                case_type=getattr(event.case_type, "value", event.case_type),
                published_at=event.created_at,
            )

        logger.info(
            "Created notification %s [%s] for recipient=%s (case %s)",
            notification.notice_id,
            event.category,
            event.recipient_id,
            event.case_id,
        )
        return notification
