"""
reviews.domain.templates — Notification text per case type.

Keyed by ``(stage name or "overall", outcome)`` where outcome is the
semantic value ``"approved"`` or ``"rejected"``.  A missing key means
the transition is announced silently (no notification).

Placeholders are ``str.format`` fields filled from the case payload plus
``case_id``, ``reviewer_role``, ``stage_title`` and ``outcome_label``.
Unknown placeholders render empty.
"""

from __future__ import annotations

from typing import Mapping

from core.domain.exceptions import ConfigurationError

from .snapshots import OVERALL_SCOPE
from .stages import CASE_TYPES, CaseType, CaseTypeDefinition

APPROVED = "approved"
REJECTED = "rejected"

MessageTemplate = tuple[str, str]  # (title, body)
TemplateTable = Mapping[CaseType, Mapping[tuple[str, str], MessageTemplate]]

_AWARD_STAGE = {
    APPROVED: (
        "Award application approved",
        "Your award application \"{award_name}\" was approved by the {reviewer_role}.",
    ),
    REJECTED: (
        "Award application not approved",
        "Your award application \"{award_name}\" was declined by the {reviewer_role}.",
    ),
}

_APPEAL_STAGE = {
    APPROVED: (
        "Appeal approved",
        "Your appeal against a disciplinary decision was upheld by the "
        "{reviewer_role}; the punishment will be revoked.",
    ),
    REJECTED: (
        "Appeal not approved",
        "Your appeal against a disciplinary decision was dismissed by the {reviewer_role}.",
    ),
}

_STATUS_CHANGE_STAGE = {
    APPROVED: (
        "Status change request approved",
        "Your \"{change_type}\" request was approved by the {reviewer_role}.",
    ),
    REJECTED: (
        "Status change request not approved",
        "Your \"{change_type}\" request was declined by the {reviewer_role}.",
    ),
}

_LEAVE_SCHOOL_STAGE = {
    APPROVED: (
        "{stage_title} approved",
        "The {stage_title} of your leave-school application has been approved.",
    ),
    REJECTED: (
        "{stage_title} not approved",
        "The {stage_title} of your leave-school application was rejected.",
    ),
}


def _per_stage(stage_names: tuple[str, ...], texts: dict[str, MessageTemplate]) -> dict:
    return {
        (name, outcome): text
        for name in stage_names
        for outcome, text in texts.items()
    }


MESSAGE_TEMPLATES: dict[CaseType, dict[tuple[str, str], MessageTemplate]] = {
    CaseType.AWARD: {
        **_per_stage(("advisor", "admin"), _AWARD_STAGE),
        (OVERALL_SCOPE, APPROVED): (
            "Award application granted",
            "Final result of your award application \"{award_name}\": {outcome_label}.",
        ),
        (OVERALL_SCOPE, REJECTED): (
            "Award application not granted",
            "Final result of your award application \"{award_name}\": {outcome_label}.",
        ),
    },
    # A punishment has a single review stage, so only the outcome of the
    # whole case is announced.
    CaseType.PUNISHMENT: {
        (OVERALL_SCOPE, APPROVED): (
            "Punishment notice",
            "A \"{punishment_type}\" punishment on your record has taken "
            "effect. Please review the details.",
        ),
        (OVERALL_SCOPE, REJECTED): (
            "Punishment revoked",
            "Your \"{punishment_type}\" punishment has been revoked.",
        ),
    },
    CaseType.APPEAL: {
        **_per_stage(("advisor", "admin"), _APPEAL_STAGE),
        (OVERALL_SCOPE, APPROVED): (
            "Appeal final result",
            "Your appeal passed the final hearing; the punishment has been revoked.",
        ),
        (OVERALL_SCOPE, REJECTED): (
            "Appeal final result",
            "Final result of your appeal: {outcome_label}.",
        ),
    },
    CaseType.STATUS_CHANGE: {
        **_per_stage(("advisor", "admin"), _STATUS_CHANGE_STAGE),
        (OVERALL_SCOPE, APPROVED): (
            "Status change request granted",
            "Final result of your \"{change_type}\" request: {outcome_label}.",
        ),
        (OVERALL_SCOPE, REJECTED): (
            "Status change request not granted",
            "Final result of your \"{change_type}\" request: {outcome_label}.",
        ),
    },
    CaseType.LEAVE_SCHOOL: {
        **_per_stage(("dormitory", "library", "finance", "admin"), _LEAVE_SCHOOL_STAGE),
        (OVERALL_SCOPE, APPROVED): (
            "Leave-school application approved",
            "Every review of your leave-school application has passed. "
            "Please complete the leaving procedures on time.",
        ),
        (OVERALL_SCOPE, REJECTED): (
            "Leave-school application not approved",
            "Your leave-school application was not approved. Please check "
            "the review opinions for the reason.",
        ),
    },
}


def validate_templates(
    templates: TemplateTable | None = None,
    registry: Mapping[CaseType, CaseTypeDefinition] | None = None,
) -> None:
    """
    Check that every template key names a declared stage (or
    ``"overall"``) and a terminal outcome.

    Raises:
        ConfigurationError: On the first bad key.
    """
    templates = MESSAGE_TEMPLATES if templates is None else templates
    registry = CASE_TYPES if registry is None else registry
    for case_type, table in templates.items():
        if case_type not in registry:
            raise ConfigurationError(
                f"Templates defined for unknown case type '{case_type}'."
            )
        declared = set(registry[case_type].stage_names) | {OVERALL_SCOPE}
        for scope, outcome in table:
            if scope not in declared:
                raise ConfigurationError(
                    f"Template for '{case_type.value}' references undeclared "
                    f"stage '{scope}'."
                )
            if outcome not in (APPROVED, REJECTED):
                raise ConfigurationError(
                    f"Template for '{case_type.value}.{scope}' uses "
                    f"non-terminal outcome '{outcome}'."
                )
