"""
Reviews app models.

``ReviewCase`` is the relational home of a ``CaseSnapshot``: one row per
award application, punishment, appeal, status change or leave-school
application.  Stage statuses, reviewer IDs and the domain payload are
JSON columns so every case type shares one table; ``version`` backs the
compare-and-swap writes of the workflow coordinator.
"""

from django.db import models

from core.models import TimeStampedModel

from .domain.stages import CaseType, OverallStatus


class ReviewCase(TimeStampedModel):
    """
    A student-affairs case under multi-stage review.

    * ``stages`` maps stage name → semantic stage status
      (``pending`` / ``approved`` / ``rejected``).
    * ``overall_status`` is always written by the engine from ``stages``.
    * ``version`` increases by one on every accepted write.
    """

    case_id = models.CharField(
        max_length=32,
        primary_key=True,
        verbose_name="Case ID",
    )
    case_type = models.CharField(
        max_length=30,
        choices=[(t.value, t.value.replace("_", " ").title()) for t in CaseType],
        db_index=True,
        verbose_name="Case Type",
    )
    subject_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name="Student ID",
    )
    stages = models.JSONField(default=dict, verbose_name="Stage Statuses")
    overall_status = models.CharField(
        max_length=20,
        choices=[(s.value, s.value.replace("_", " ").title()) for s in OverallStatus],
        default=OverallStatus.IN_PROGRESS.value,
        db_index=True,
        verbose_name="Overall Status",
    )
    reviewers = models.JSONField(
        default=dict,
        blank=True,
        verbose_name="Reviewer IDs",
        help_text="Stage name → ID of the reviewer who recorded its status.",
    )
    payload = models.JSONField(
        default=dict,
        blank=True,
        verbose_name="Case Details",
        help_text="Award name, punishment type, reasons, dates and opinions.",
    )
    version = models.PositiveIntegerField(default=1, verbose_name="Version")

    class Meta:
        verbose_name = "Review Case"
        verbose_name_plural = "Review Cases"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["case_type", "overall_status"], name="reviewcase_type_status_idx"),
        ]

    def __str__(self):
        return f"{self.case_id} ({self.case_type}, {self.overall_status})"
