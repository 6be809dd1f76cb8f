"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside the review
workflow and its service layers.  They are deliberately **not** DRF
exceptions so that the domain layer stays framework-agnostic.  The global
DRF exception handler (``core.domain.exception_handler``) maps them to HTTP
responses.

Mapping cheatsheet
------------------
┌────────────────────────┬──────────────────────────────────────┬──────┐
│ Domain Exception       │ Meaning                              │ Code │
├────────────────────────┼──────────────────────────────────────┼──────┤
│ DomainError            │ Business rule violated               │ 400  │
│ NotFound               │ Case / notification does not exist   │ 404  │
│ Conflict               │ Duplicate creation                   │ 409  │
│ InvalidTransition      │ Out-of-order stage update            │ 409  │
│ StorageConflict        │ Version check failed on every retry  │ 409  │
│ PartialDispatchFailure │ Notification not saved (soft error)  │  —   │
│ ConfigurationError     │ Unknown case type / stage / label    │ 500  │
└────────────────────────┴──────────────────────────────────────┴──────┘

``ConfigurationError`` is intentionally outside the ``DomainError`` tree:
it signals a deployment bug and should stop the process at startup
(``ReviewsConfig.ready``) rather than be answered per request.

Recommended usage inside a service::

    from core.domain.exceptions import NotFound

    snapshot = store.get(case_id)
    if snapshot is None:
        raise NotFound(f"Case {case_id} does not exist.")
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class NotFound(DomainError):
    """
    The requested resource does not exist.

    Maps to HTTP 404.  Never retried by the workflow coordinator.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: duplicate case registration.
    Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A stage moved out of ``pending`` before the stages ahead of it were
    approved.  Only raised when stage-order enforcement is switched on.

    Example::

        raise InvalidTransition(
            current="pending",
            target="approved",
            reason="Stage 'admin' requires 'advisor' to be approved first.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"({reason})")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class StorageConflict(Conflict):
    """
    The snapshot store rejected every compare-and-swap write for a case.

    Raised (or carried in an ``UpdateResult``) after the coordinator has
    used up its bounded retries.
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        case_id: str | None = None,
        attempts: int | None = None,
    ) -> None:
        if message is None:
            message = (
                f"Case {case_id} was modified concurrently; "
                f"gave up after {attempts} attempt(s)."
            )
        super().__init__(message)
        self.case_id = case_id
        self.attempts = attempts


class PartialDispatchFailure(DomainError):
    """
    A notification could not be saved after its case update committed.

    Soft error: the review decision stands and the failure is reported
    next to a successful result instead of being raised.
    """

    def __init__(self, event: Any, cause: BaseException) -> None:
        super().__init__(
            f"Notification {getattr(event, 'notice_id', None)} for case "
            f"{getattr(event, 'case_id', None)} was not saved: {cause}"
        )
        self.event = event
        self.cause = cause


class ConfigurationError(Exception):
    """
    The workflow configuration references an unknown case type, stage,
    label or combination rule.  A programming / deployment error.
    """
