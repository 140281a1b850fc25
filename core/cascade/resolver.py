"""
Ringside Cascade - Resolver
===========================
Pure effective-value resolution. No I/O, no mutation.

Precedence is strict, most specific wins:
    trial:  trial override ?? show default
    class:  class override ?? trial override ?? show default

A missing key and an Inherited state both fall through to the next
level. Nothing is cached, so a show default change is visible to every
scope without an override as soon as it is applied.
"""

from __future__ import annotations

from typing import Mapping, Optional, Tuple

from core.policies.models import Custom, OverrideState, PolicyValue, Scope


OverrideMap = Mapping[int, OverrideState]


def _custom(overrides: Optional[OverrideMap], scope_id) -> Optional[Custom]:
    if overrides is None or scope_id is None:
        return None
    state = overrides.get(scope_id)
    if isinstance(state, Custom):
        return state
    return None


def resolve_with_source(
    show_default: PolicyValue,
    trial_overrides: Optional[OverrideMap],
    trial_id: Optional[int],
    class_overrides: Optional[OverrideMap] = None,
    class_id: Optional[int] = None,
) -> Tuple[PolicyValue, Scope]:
    """Return (effective value, scope it came from)."""
    state = _custom(class_overrides, class_id)
    if state is not None:
        return state.value, Scope.CLASS

    state = _custom(trial_overrides, trial_id)
    if state is not None:
        return state.value, Scope.TRIAL

    return show_default, Scope.SHOW


def resolve_trial(
    show_default: PolicyValue,
    trial_overrides: Optional[OverrideMap],
    trial_id: int,
) -> PolicyValue:
    return resolve_with_source(show_default, trial_overrides, trial_id)[0]


def resolve_class(
    show_default: PolicyValue,
    trial_overrides: Optional[OverrideMap],
    class_overrides: Optional[OverrideMap],
    trial_id: int,
    class_id: int,
) -> PolicyValue:
    return resolve_with_source(
        show_default, trial_overrides, trial_id, class_overrides, class_id
    )[0]


def resolve_source(
    show_default: PolicyValue,
    trial_overrides: Optional[OverrideMap],
    trial_id: Optional[int],
    class_overrides: Optional[OverrideMap] = None,
    class_id: Optional[int] = None,
) -> Scope:
    return resolve_with_source(
        show_default, trial_overrides, trial_id, class_overrides, class_id
    )[1]
