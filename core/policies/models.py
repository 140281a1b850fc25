"""
Ringside Policies - Immutable Models
====================================
Closed policy enumerations and the records that flow between the
cascade resolver, the settings controllers and the override store.

Two policies cascade Show -> Trial -> Class:
    VISIBILITY    - result visibility preset (open | standard | review)
    SELF_CHECKIN  - whether exhibitors may check themselves in

Override presence is explicit: a scope is either Inherited or
Custom(value). A dict key that is missing means "not loaded yet",
never "inheriting".
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Union

from core.policies.errors import ValidationError


# ══════════════════════════════════════════════════════════════
# VISIBILITY PRESETS
# ══════════════════════════════════════════════════════════════

class VisibilityPreset(str, Enum):
    OPEN = "open"
    STANDARD = "standard"
    REVIEW = "review"


@dataclass(frozen=True)
class PresetConfig:
    label: str
    description: str
    icon: str


PRESET_CONFIGS: Dict[VisibilityPreset, PresetConfig] = {
    VisibilityPreset.OPEN: PresetConfig(
        label="Open",
        description="Results appear as soon as each dog is scored.",
        icon="zap",
    ),
    VisibilityPreset.STANDARD: PresetConfig(
        label="Standard",
        description="Q/NQ shows immediately, everything else when the class completes.",
        icon="clock",
    ),
    VisibilityPreset.REVIEW: PresetConfig(
        label="Review",
        description="Nothing is shown until results are released by an administrator.",
        icon="lock",
    ),
}

_unconfigured = [p.value for p in VisibilityPreset if p not in PRESET_CONFIGS]
if _unconfigured:
    raise RuntimeError(f"Visibility presets without a config entry: {_unconfigured}")


# Fallbacks used when a show has no stored defaults.
DEFAULT_VISIBILITY_PRESET = VisibilityPreset.STANDARD
DEFAULT_SELF_CHECKIN_ENABLED = True

PolicyValue = Union[VisibilityPreset, bool]


# ══════════════════════════════════════════════════════════════
# POLICY / SCOPE
# ══════════════════════════════════════════════════════════════

class Scope(Enum):
    SHOW = "show"
    TRIAL = "trial"
    CLASS = "class"

    @property
    def label(self) -> str:
        return f"{self.value.capitalize()} Level"


OVERRIDE_SCOPES = frozenset({Scope.TRIAL, Scope.CLASS})


class Policy(Enum):
    VISIBILITY = "visibility"
    SELF_CHECKIN = "self_checkin"

    @property
    def fallback(self) -> PolicyValue:
        if self is Policy.VISIBILITY:
            return DEFAULT_VISIBILITY_PRESET
        return DEFAULT_SELF_CHECKIN_ENABLED

    def validate(self, value) -> PolicyValue:
        """Return the canonical value, or raise ValidationError."""
        if self is Policy.VISIBILITY:
            if isinstance(value, VisibilityPreset):
                return value
            if isinstance(value, str):
                try:
                    return VisibilityPreset(value.strip().lower())
                except ValueError:
                    pass
            raise ValidationError(
                f"'{value}' is not a visibility preset. "
                f"Must be one of: {[p.value for p in VisibilityPreset]}"
            )

        if isinstance(value, bool):
            return value
        raise ValidationError(f"Self check-in must be true or false, got '{value}'.")

    def encode(self, value: PolicyValue) -> str:
        value = self.validate(value)
        if self is Policy.VISIBILITY:
            return value.value
        return "true" if value else "false"

    def decode(self, raw: str) -> PolicyValue:
        if self is Policy.VISIBILITY:
            return self.validate(raw)
        lowered = str(raw).strip().lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
        raise ValidationError(f"Cannot decode self check-in value '{raw}'.")


# ══════════════════════════════════════════════════════════════
# OVERRIDE STATE (explicit Inherited | Custom)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Inherited:
    is_custom = False


@dataclass(frozen=True)
class Custom:
    value: PolicyValue
    is_custom = True


INHERITED = Inherited()

OverrideState = Union[Inherited, Custom]


# ══════════════════════════════════════════════════════════════
# RECORDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OverrideRecord:
    """
    One persisted override row.

    At most one record exists per (scope, scope_id, policy).
    """

    scope: Scope
    scope_id: int
    policy: Policy
    value: PolicyValue
    actor: str = ""
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.scope not in OVERRIDE_SCOPES:
            raise ValueError(f"Overrides exist only at trial/class scope, got {self.scope}.")

        if not isinstance(self.scope_id, int) or isinstance(self.scope_id, bool):
            raise ValueError("scope_id must be an int.")

        if not isinstance(self.policy, Policy):
            raise ValueError("policy must be a Policy.")

        object.__setattr__(self, "value", self.policy.validate(self.value))

    def key(self) -> tuple[Scope, int, Policy]:
        return (self.scope, self.scope_id, self.policy)


@dataclass(frozen=True)
class ShowDefaults:
    visibility_preset: VisibilityPreset = DEFAULT_VISIBILITY_PRESET
    self_checkin_enabled: bool = DEFAULT_SELF_CHECKIN_ENABLED

    def value_for(self, policy: Policy) -> PolicyValue:
        if policy is Policy.VISIBILITY:
            return self.visibility_preset
        return self.self_checkin_enabled

    def with_value(self, policy: Policy, value: PolicyValue) -> "ShowDefaults":
        value = policy.validate(value)
        if policy is Policy.VISIBILITY:
            return replace(self, visibility_preset=value)
        return replace(self, self_checkin_enabled=value)


@dataclass(frozen=True)
class ClassInfo:
    """The slice of a class the admin screens need for bulk operations."""

    id: int
    trial_id: int
    element: str
    level: str
    section: str = ""

    @property
    def label(self) -> str:
        if self.section:
            return f"{self.element} ({self.level} • {self.section})"
        return f"{self.element} ({self.level})"


@dataclass(frozen=True)
class ResultsRelease:
    """Official release of one class's results by a named administrator."""

    class_id: int
    released_by: str
    released_at: datetime

    def __post_init__(self):
        if not isinstance(self.released_by, str) or not self.released_by.strip():
            raise ValueError("released_by must be a non-empty string.")

        if self.released_at.tzinfo is None:
            raise ValueError("released_at must be timezone-aware.")
