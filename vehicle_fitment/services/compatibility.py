"""Compatibility matching between a vehicle selection and a catalog item.

The include pass walks the selection from BRAND downwards:

    make mismatch            -> incompatible (decisive even with nothing deeper)
    model/year/engine miss   -> incompatible
    constrained level unset  -> partial_unknown
    otherwise                -> compatible

An empty include field matches anything. Exclude clauses are then checked
with the same per-level rules; a clause only matches when every level it
constrains is selected and satisfied. A matching exclude forces
incompatible and can never upgrade a verdict.

Everything here is pure: the same (selection, descriptor) always yields an
equal MatchVerdict and neither input is mutated.
"""

from typing import Optional

from ..core.enums import (
    LEVEL_ORDER,
    MISMATCH_REASONS,
    ClauseKind,
    CompatibilityStatus,
    Level,
    MatchReason,
)
from ..models.compatibility import (
    CompatibilityClause,
    CompatibilityDescriptor,
    FieldCheck,
    MatchVerdict,
)
from ..models.vehicle import VehicleSelection, normalize_key


def level_matches(
    selection: VehicleSelection, clause: CompatibilityClause, level: Level
) -> bool:
    """Check one selected level against a clause.

    Unconstrained levels always match. The caller guarantees `level` is
    selected.
    """
    if not clause.constrains(level):
        return True

    option = selection.get(level)
    if option is None:
        return False

    if level is Level.YEAR:
        year = option.year_value
        if year is None:
            return False
        return any(r.contains(year) for r in clause.year_ranges)

    if level is Level.BRAND:
        allowed = clause.makes
    elif level is Level.MODEL:
        allowed = clause.models
    else:
        allowed = clause.engines

    keys = option.match_keys
    return any(normalize_key(value) in keys for value in allowed)


def _include_pass(
    selection: VehicleSelection, descriptor: CompatibilityDescriptor
) -> MatchVerdict:
    if selection.is_empty:
        return MatchVerdict(
            status=CompatibilityStatus.PARTIAL_UNKNOWN,
            reason=MatchReason.NO_SELECTION,
        )

    if descriptor.universal_fit:
        return MatchVerdict(
            status=CompatibilityStatus.COMPATIBLE,
            reason=MatchReason.UNIVERSAL_FIT,
            fields=tuple(
                FieldCheck(level=lvl, matched=True) for lvl in selection.selected_levels
            ),
        )

    fields: list[FieldCheck] = []
    unresolved = False
    for level in LEVEL_ORDER:
        if selection.get(level) is None:
            # Deeper levels cannot be judged without this one
            unresolved = any(
                descriptor.constrains(lvl) for lvl in LEVEL_ORDER if lvl >= level
            )
            break

        matched = level_matches(selection, descriptor, level)
        fields.append(FieldCheck(level=level, matched=matched))
        if not matched:
            return MatchVerdict(
                status=CompatibilityStatus.INCOMPATIBLE,
                reason=MISMATCH_REASONS[level],
                fields=tuple(fields),
            )

    if unresolved:
        return MatchVerdict(
            status=CompatibilityStatus.PARTIAL_UNKNOWN,
            reason=MatchReason.SELECTION_INCOMPLETE,
            fields=tuple(fields),
        )
    return MatchVerdict(
        status=CompatibilityStatus.COMPATIBLE,
        reason=MatchReason.ALL_SELECTED_MATCH,
        fields=tuple(fields),
    )


def clause_matches(selection: VehicleSelection, clause: CompatibilityClause) -> bool:
    """Whether the selection falls inside an exclude clause.

    An unselected level never makes a clause match, and a clause that
    constrains nothing matches nothing.
    """
    levels = clause.constrained_levels
    if not levels:
        return False
    for level in levels:
        if selection.get(level) is None:
            return False
        if not level_matches(selection, clause, level):
            return False
    return True


def _first_matching_exclude(
    selection: VehicleSelection, descriptor: CompatibilityDescriptor
) -> Optional[int]:
    for i, clause in enumerate(descriptor.excludes):
        if clause_matches(selection, clause):
            return i
    return None


def match(
    selection: VehicleSelection, descriptor: Optional[CompatibilityDescriptor]
) -> MatchVerdict:
    """Decide whether a catalog item fits a (possibly partial) vehicle selection.

    Args:
        selection: Current vehicle selection, possibly empty
        descriptor: Item compatibility data; None is treated as universal fit

    Returns:
        MatchVerdict with status, reason and the evaluated field checks
    """
    if descriptor is None:
        descriptor = CompatibilityDescriptor(universal_fit=True)

    problems = descriptor.problems()
    if problems:
        # Prefer showing a possibly irrelevant item over hiding a relevant one
        reason = (
            MatchReason.NO_SELECTION
            if selection.is_empty
            else MatchReason.MALFORMED_DESCRIPTOR
        )
        return MatchVerdict(
            status=CompatibilityStatus.PARTIAL_UNKNOWN,
            reason=reason,
            notes=tuple(problems),
        )

    verdict = _include_pass(selection, descriptor)
    if verdict.is_incompatible or selection.is_empty:
        return verdict

    excluded_by = _first_matching_exclude(selection, descriptor)
    if excluded_by is None:
        return verdict

    clause = descriptor.excludes[excluded_by]
    exclude_fields = tuple(
        FieldCheck(level=lvl, matched=True, clause=ClauseKind.EXCLUDE)
        for lvl in clause.constrained_levels
    )
    return MatchVerdict(
        status=CompatibilityStatus.INCOMPATIBLE,
        reason=MatchReason.EXCLUDED,
        fields=verdict.fields + exclude_fields,
        excluded_by=excluded_by,
    )
