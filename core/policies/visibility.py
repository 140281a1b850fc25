"""
Ringside Policies - Result Field Visibility
===========================================
Expands a visibility preset into per-field timings and decides which
result fields a viewer may see.

Judges and admins always see every field. Stewards and exhibitors
follow the timings of the effective preset.
Placement is never immediate: it only exists once the class completes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from core.policies.models import VisibilityPreset


class VisibilityTiming(str, Enum):
    IMMEDIATE = "immediate"
    CLASS_COMPLETE = "class_complete"
    MANUAL_RELEASE = "manual_release"


class ViewerRole(str, Enum):
    ADMIN = "admin"
    JUDGE = "judge"
    STEWARD = "steward"
    EXHIBITOR = "exhibitor"


UNRESTRICTED_ROLES = frozenset({ViewerRole.ADMIN, ViewerRole.JUDGE})


@dataclass(frozen=True)
class FieldTimings:
    placement: VisibilityTiming
    qualification: VisibilityTiming
    time: VisibilityTiming
    faults: VisibilityTiming

    def __post_init__(self):
        if self.placement is VisibilityTiming.IMMEDIATE:
            raise ValueError("placement can never be immediate.")


@dataclass(frozen=True)
class VisibleResultFields:
    placement: bool
    qualification: bool
    time: bool
    faults: bool


_I = VisibilityTiming.IMMEDIATE
_C = VisibilityTiming.CLASS_COMPLETE
_M = VisibilityTiming.MANUAL_RELEASE

PRESET_TIMINGS: Dict[VisibilityPreset, FieldTimings] = {
    VisibilityPreset.OPEN: FieldTimings(placement=_C, qualification=_I, time=_I, faults=_I),
    VisibilityPreset.STANDARD: FieldTimings(placement=_C, qualification=_I, time=_C, faults=_C),
    VisibilityPreset.REVIEW: FieldTimings(placement=_M, qualification=_M, time=_M, faults=_M),
}


def timings_for(preset: VisibilityPreset) -> FieldTimings:
    return PRESET_TIMINGS[VisibilityPreset(preset)]


def is_field_visible(
    timing: VisibilityTiming,
    class_complete: bool,
    results_released: bool,
) -> bool:
    if timing is VisibilityTiming.IMMEDIATE:
        return True
    if timing is VisibilityTiming.CLASS_COMPLETE:
        return class_complete
    if timing is VisibilityTiming.MANUAL_RELEASE:
        return results_released
    return False


def visible_result_fields(
    preset: VisibilityPreset,
    role: ViewerRole,
    class_complete: bool,
    results_released: bool,
) -> VisibleResultFields:
    if ViewerRole(role) in UNRESTRICTED_ROLES:
        return VisibleResultFields(placement=True, qualification=True, time=True, faults=True)

    timings = timings_for(preset)
    return VisibleResultFields(
        placement=is_field_visible(timings.placement, class_complete, results_released),
        qualification=is_field_visible(timings.qualification, class_complete, results_released),
        time=is_field_visible(timings.time, class_complete, results_released),
        faults=is_field_visible(timings.faults, class_complete, results_released),
    )


def availability_message(timing: VisibilityTiming, class_complete: bool) -> str:
    """Hint shown in place of a hidden field."""
    if timing is VisibilityTiming.IMMEDIATE:
        return ""
    if timing is VisibilityTiming.CLASS_COMPLETE:
        return "Available soon" if class_complete else "Available when class completes"
    if timing is VisibilityTiming.MANUAL_RELEASE:
        return "Pending official release" if class_complete else "Pending release"
    return "Not available"
