"""
reviews.domain.transitions — Transition detector.

Diffs a ``before`` and an ``after`` snapshot of one case:

1. one ``stage:<name>`` transition per stage whose status differs
   (missing stages count as ``pending``), in declared stage order;
2. one ``overall`` transition if ``combine()`` gives different results
   for the two stage maps.

Stored ``overall`` fields are ignored on both sides.  A case being
created (``before is None``) yields no transitions.
"""

from __future__ import annotations

from .snapshots import CaseSnapshot, Transition
from .stages import combine, get_definition


def diff(before: CaseSnapshot | None, after: CaseSnapshot) -> list[Transition]:
    if before is None:
        return []

    definition = get_definition(after.case_type)
    names = set(before.stages) | set(after.stages)
    # Undeclared names are rejected by combine() below.
    ordered = [name for name in definition.stage_names if name in names]
    ordered += sorted(names - set(ordered))

    overall_before = combine(after.case_type, before.stages)
    overall_after = combine(after.case_type, after.stages)

    transitions: list[Transition] = []
    for name in ordered:
        old, new = before.stage(name), after.stage(name)
        if old is not new:
            transitions.append(Transition.for_stage(after, name, old, new))

    if overall_before is not overall_after:
        transitions.append(Transition.for_overall(after, overall_before, overall_after))
    return transitions
