"""
Reviews app serializers.

Input serializers translate domain labels (``"pending_review"``,
``"effective"``, ...) into semantic statuses and reject unknown stages
or labels with a 400 before anything reaches the workflow engine.
Output serializers render snapshots back with their domain labels.
"""

from __future__ import annotations

from typing import Any

from django.core.validators import RegexValidator
from rest_framework import serializers

from core.constants import CASE_ID_PATTERN
from core.domain.exceptions import ConfigurationError

from .domain.stages import CaseType, StageStatus, get_definition

CASE_TYPE_CHOICES = [t.value for t in CaseType]


def _parse_stage_labels(case_type: str, labels: dict[str, str]) -> dict[str, StageStatus]:
    definition = get_definition(case_type)
    parsed: dict[str, StageStatus] = {}
    errors: dict[str, str] = {}
    for name, label in labels.items():
        try:
            parsed[name] = definition.stage(name).parse(label)
        except ConfigurationError as exc:
            errors[name] = str(exc)
    if errors:
        raise serializers.ValidationError({"stages": errors})
    return parsed


def _check_reviewer_stages(case_type: str, reviewers: dict[str, str]) -> None:
    declared = set(get_definition(case_type).stage_names)
    unknown = sorted(set(reviewers) - declared)
    if unknown:
        raise serializers.ValidationError(
            {"reviewers": f"Unknown stage(s): {', '.join(unknown)}."}
        )


# ── Input ───────────────────────────────────────────────────────────


class ReviewCaseCreateSerializer(serializers.Serializer):
    """Register a new case.  Stages default to pending."""

    case_type = serializers.ChoiceField(choices=CASE_TYPE_CHOICES)
    subject_id = serializers.CharField(max_length=64, help_text="Student ID.")
    case_id = serializers.CharField(
        max_length=32,
        required=False,
        allow_blank=True,
        help_text="Leave empty to have one generated.",
        validators=[
            RegexValidator(
                rf"^{CASE_ID_PATTERN}\Z",
                "Case IDs may only contain letters, digits, hyphens and underscores.",
            )
        ],
    )
    stages = serializers.DictField(child=serializers.CharField(), required=False, default=dict)
    reviewers = serializers.DictField(child=serializers.CharField(), required=False, default=dict)
    payload = serializers.DictField(required=False, default=dict)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        attrs["stages"] = _parse_stage_labels(attrs["case_type"], attrs.get("stages", {}))
        _check_reviewer_stages(attrs["case_type"], attrs.get("reviewers", {}))
        return attrs


class ReviewCaseUpdateSerializer(serializers.Serializer):
    """
    A reviewer's decision.  Only the stages, reviewers and payload keys
    given are changed; overall status is always derived by the engine.
    """

    case_type = serializers.ChoiceField(choices=CASE_TYPE_CHOICES)
    stages = serializers.DictField(child=serializers.CharField(), required=False, default=dict)
    reviewers = serializers.DictField(child=serializers.CharField(), required=False, default=dict)
    payload = serializers.DictField(required=False, default=dict)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        attrs["stages"] = _parse_stage_labels(attrs["case_type"], attrs.get("stages", {}))
        _check_reviewer_stages(attrs["case_type"], attrs.get("reviewers", {}))
        return attrs


# ── Output ──────────────────────────────────────────────────────────


class ReviewCaseDetailSerializer(serializers.Serializer):
    """Renders a ``CaseSnapshot`` with domain labels."""

    case_id = serializers.CharField(read_only=True)
    case_type = serializers.SerializerMethodField()
    subject_id = serializers.CharField(read_only=True)
    stages = serializers.SerializerMethodField()
    overall_status = serializers.SerializerMethodField()
    reviewers = serializers.DictField(read_only=True)
    payload = serializers.DictField(read_only=True)
    version = serializers.IntegerField(read_only=True)

    def get_case_type(self, snapshot) -> str:
        return snapshot.case_type.value

    def get_stages(self, snapshot) -> dict[str, str]:
        definition = get_definition(snapshot.case_type)
        return {
            stage.name: stage.label_for(snapshot.stage(stage.name))
            for stage in definition.stages
        }

    def get_overall_status(self, snapshot) -> str:
        return get_definition(snapshot.case_type).overall_label(snapshot.overall)


class NotificationEventSerializer(serializers.Serializer):
    notice_id = serializers.CharField(read_only=True)
    recipient_id = serializers.CharField(read_only=True)
    title = serializers.CharField(read_only=True)
    body = serializers.CharField(read_only=True)
    category = serializers.CharField(read_only=True)
    priority = serializers.CharField(read_only=True)
    publisher = serializers.CharField(read_only=True)
    source_actor = serializers.CharField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)


class TransitionSerializer(serializers.Serializer):
    scope = serializers.CharField(read_only=True)
    old = serializers.SerializerMethodField()
    new = serializers.SerializerMethodField()

    def get_old(self, transition) -> str:
        return transition.old.value

    def get_new(self, transition) -> str:
        return transition.new.value


class ReviewUpdateResultSerializer(serializers.Serializer):
    """Renders an accepted ``UpdateResult``."""

    case = ReviewCaseDetailSerializer(source="snapshot", read_only=True)
    transitions = TransitionSerializer(many=True, read_only=True)
    notifications = NotificationEventSerializer(many=True, read_only=True)
    undelivered = serializers.SerializerMethodField()

    def get_undelivered(self, result) -> int:
        return len(result.dispatch_failures)


class StageDescriptionSerializer(serializers.Serializer):
    name = serializers.CharField()
    title = serializers.CharField()
    reviewer_role = serializers.CharField()
    labels = serializers.DictField(child=serializers.CharField())


class CaseTypeDescriptionSerializer(serializers.Serializer):
    case_type = serializers.CharField()
    rule = serializers.CharField()
    id_prefix = serializers.CharField()
    category = serializers.CharField()
    stages = StageDescriptionSerializer(many=True)
    overall_labels = serializers.DictField(child=serializers.CharField())
