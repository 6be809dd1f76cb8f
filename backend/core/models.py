"""
Core app models.

Provides the abstract timestamp base and the ``Notification`` inbox that
the review workflow dispatches into.
"""

from django.db import models


class TimeStampedModel(models.Model):
    """
    Abstract base model that provides self-updating ``created_at`` and
    ``updated_at`` timestamp fields for every concrete child model.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True


class Notification(TimeStampedModel):
    """
    Message sent to a student when one of their review cases reaches a
    decision (a stage approved/rejected, or the case's final outcome).

    Recipients are identified by student ID rather than by a user foreign
    key: students are matched by username at read time.
    """

    notice_id = models.CharField(
        max_length=32,
        unique=True,
        verbose_name="Notice ID",
        help_text="N<timestamp><sequence><random hex>, assigned at dispatch.",
    )
    recipient_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name="Recipient",
    )
    title = models.CharField(max_length=255, verbose_name="Title")
    message = models.TextField(verbose_name="Message")
    category = models.CharField(max_length=50, verbose_name="Category")
    priority = models.CharField(max_length=20, verbose_name="Priority")
    publisher = models.CharField(
        max_length=100,
        verbose_name="Publisher",
        help_text="Reviewing office, or 'System' for final outcomes.",
    )
    source_actor = models.CharField(
        max_length=64,
        verbose_name="Source Actor",
        help_text="Reviewer ID, or 'system' for final outcomes.",
    )
    case_id = models.CharField(max_length=32, blank=True, default="", verbose_name="Case ID")
    case_type = models.CharField(max_length=30, blank=True, default="", verbose_name="Case Type")
    published_at = models.DateTimeField(verbose_name="Published At")
    is_read = models.BooleanField(default=False, verbose_name="Read")
    read_at = models.DateTimeField(null=True, blank=True, verbose_name="Read At")

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ["-published_at", "-id"]
        indexes = [
            models.Index(fields=["recipient_id", "is_read"], name="notif_recipient_read_idx"),
        ]

    def __str__(self):
        return f"[{self.recipient_id}] {self.title}"
