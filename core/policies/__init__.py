"""
Ringside Policies - Public API
==============================
"""

from core.policies.errors import (
    ErrorCode,
    PersistenceError,
    SettingsError,
    ValidationError,
    describe_failure,
)
from core.policies.models import (
    DEFAULT_SELF_CHECKIN_ENABLED,
    DEFAULT_VISIBILITY_PRESET,
    INHERITED,
    PRESET_CONFIGS,
    ClassInfo,
    Custom,
    Inherited,
    OverrideRecord,
    OverrideState,
    Policy,
    PolicyValue,
    PresetConfig,
    ResultsRelease,
    Scope,
    ShowDefaults,
    VisibilityPreset,
)
from core.policies.visibility import (
    PRESET_TIMINGS,
    FieldTimings,
    ViewerRole,
    VisibilityTiming,
    VisibleResultFields,
    availability_message,
    timings_for,
    visible_result_fields,
)

__all__ = [
    "ErrorCode",
    "SettingsError",
    "ValidationError",
    "PersistenceError",
    "describe_failure",
    "DEFAULT_SELF_CHECKIN_ENABLED",
    "DEFAULT_VISIBILITY_PRESET",
    "INHERITED",
    "PRESET_CONFIGS",
    "ClassInfo",
    "Custom",
    "Inherited",
    "OverrideRecord",
    "OverrideState",
    "Policy",
    "PolicyValue",
    "PresetConfig",
    "ResultsRelease",
    "Scope",
    "ShowDefaults",
    "VisibilityPreset",
    "PRESET_TIMINGS",
    "FieldTimings",
    "ViewerRole",
    "VisibilityTiming",
    "VisibleResultFields",
    "availability_message",
    "timings_for",
    "visible_result_fields",
]
