"""
reviews.domain — The multi-stage review workflow engine.

Pure Python, Django-unaware.  The Django layer (``reviews.services``)
plugs real storage into the ports declared in ``coordinator``.

Modules
-------
stages       Case-type table, status vocabularies and combination rules.
snapshots    Immutable value types: snapshots, updates, transitions, events.
transitions  Diffs two snapshots into stage / overall transitions.
templates    Notification title / body table per case type.
composer     Turns a transition into zero-or-one notification event.
sequence     Timestamp + counter identifiers for cases and notices.
coordinator  Load → CAS write → diff → compose → dispatch.
memory       In-memory store pair implementing the coordinator's ports.

Usage::

    from reviews.domain.coordinator import WorkflowCoordinator
    from reviews.domain.snapshots import CaseUpdate
    from reviews.domain.stages import CaseType, StageStatus

    result = coordinator.apply_update(
        case_id,
        CaseType.AWARD,
        CaseUpdate(stages={"advisor": StageStatus.APPROVED}),
    )
"""
