"""
reviews.domain.composer — Turns a transition into a notification event.

Policy (identical for every case type):

* Only transitions into a terminal status notify; entering ``pending``
  or ``in_progress`` never does.
* The recipient is always the case subject (the student).
* Stage transitions are published by the stage's reviewing office with
  the recorded reviewer ID as source actor; overall transitions are
  published by the system.
* Title and body come from the template table; no template, no event.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from core.constants import DEFAULT_NOTICE_PRIORITY

from .snapshots import SYSTEM_ACTOR, CaseSnapshot, NotificationEvent, Transition
from .stages import CaseTypeDefinition, OverallStatus, StageStatus, get_definition
from .templates import MESSAGE_TEMPLATES, TemplateTable, validate_templates

logger = logging.getLogger(__name__)

SYSTEM_PUBLISHER = "System"


class _TemplateContext(dict):
    """Renders unknown placeholders as empty strings."""

    def __missing__(self, key: str) -> str:
        logger.debug("Template placeholder %r has no value", key)
        return ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationComposer:
    """
    Stateless mapper from ``Transition`` to ``NotificationEvent``.

    The template table is validated on construction so a bad table fails
    at startup instead of on the first matching update.
    """

    def __init__(
        self,
        templates: TemplateTable | None = None,
        *,
        priority: str = DEFAULT_NOTICE_PRIORITY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._templates = MESSAGE_TEMPLATES if templates is None else templates
        validate_templates(self._templates)
        self._priority = priority
        self._clock = clock

    def compose(self, transition: Transition, after: CaseSnapshot) -> NotificationEvent | None:
        if not transition.new.is_terminal:
            return None

        template = self._templates.get(transition.case_type, {}).get(
            (transition.template_key, transition.new.value)
        )
        if template is None:
            return None

        definition = get_definition(transition.case_type)
        context = self._context(definition, transition, after)
        title, body = template

        if transition.is_overall:
            source_actor, publisher = SYSTEM_ACTOR, SYSTEM_PUBLISHER
        else:
            stage = definition.stage(transition.stage_name)
            source_actor = after.reviewers.get(stage.name) or stage.name
            publisher = stage.reviewer_role

        return NotificationEvent(
            recipient_id=after.subject_id,
            title=title.format_map(context),
            body=body.format_map(context),
            category=definition.category,
            priority=self._priority,
            source_actor=source_actor,
            publisher=publisher,
            case_id=after.case_id,
            case_type=after.case_type,
            created_at=self._clock(),
        )

    @staticmethod
    def _context(
        definition: CaseTypeDefinition,
        transition: Transition,
        after: CaseSnapshot,
    ) -> Mapping[str, Any]:
        context = _TemplateContext(after.payload)
        context["case_id"] = after.case_id
        if transition.is_overall:
            context["reviewer_role"] = SYSTEM_PUBLISHER
            context["stage_title"] = ""
            context["outcome_label"] = definition.overall_label(OverallStatus(transition.new))
        else:
            stage = definition.stage(transition.stage_name)
            context["reviewer_role"] = stage.reviewer_role
            context["stage_title"] = stage.title
            context["outcome_label"] = stage.label_for(StageStatus(transition.new))
        return context
