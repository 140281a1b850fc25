"""
Ringside Settings Store - Relational Settings Tables
====================================================
Show defaults, trial/class override rows and the settings audit trail.

RULES:
- One override row per (trial, policy) and per (class, policy).
- A missing override row means the scope inherits from its parent.
  Rows are deleted, never nulled.
- Audit rows are append-only.

Trial and TrialClass carry only what the settings engine needs to
scope overrides to a show, label classes and record result releases.
"""

from django.db import models


class SettingsPolicy(models.TextChoices):
    VISIBILITY = "visibility", "Result Visibility"
    SELF_CHECKIN = "self_checkin", "Self Check-in"


class SettingsScope(models.TextChoices):
    SHOW = "show", "Show Level"
    TRIAL = "trial", "Trial Level"
    CLASS = "class", "Class Level"


class VisibilityPresetChoice(models.TextChoices):
    OPEN = "open", "Open"
    STANDARD = "standard", "Standard"
    REVIEW = "review", "Review"


class ShowSettingsDefault(models.Model):
    license_key = models.CharField(max_length=128, primary_key=True)
    visibility_preset = models.CharField(
        max_length=16,
        choices=VisibilityPresetChoice.choices,
        default=VisibilityPresetChoice.STANDARD,
    )
    self_checkin_enabled = models.BooleanField(default=True)
    updated_by = models.CharField(max_length=255, blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "ringside_show_settings_defaults"

    def __str__(self) -> str:
        return f"{self.license_key}:{self.visibility_preset}:{self.self_checkin_enabled}"


class Trial(models.Model):
    id = models.BigIntegerField(primary_key=True)
    license_key = models.CharField(max_length=128, db_index=True)
    trial_number = models.PositiveSmallIntegerField(default=1)
    trial_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = "ringside_trials"
        ordering = ["trial_date", "trial_number", "id"]

    def __str__(self) -> str:
        return f"Trial {self.trial_number} ({self.license_key})"


class TrialClass(models.Model):
    id = models.BigIntegerField(primary_key=True)
    trial = models.ForeignKey(
        Trial,
        on_delete=models.CASCADE,
        related_name="classes",
    )
    element = models.CharField(max_length=64)
    level = models.CharField(max_length=64)
    section = models.CharField(max_length=16, blank=True, default="")
    results_released_by = models.CharField(max_length=255, blank=True, default="")
    results_released_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "ringside_classes"
        ordering = ["trial_id", "element", "level", "section", "id"]

    def __str__(self) -> str:
        return f"{self.element} {self.level} {self.section}".strip()


class TrialSettingsOverride(models.Model):
    trial = models.ForeignKey(
        Trial,
        on_delete=models.CASCADE,
        related_name="settings_overrides",
    )
    policy = models.CharField(max_length=32, choices=SettingsPolicy.choices)
    value = models.CharField(max_length=32)
    updated_by = models.CharField(max_length=255)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "ringside_trial_settings_overrides"
        ordering = ["trial_id", "policy"]
        constraints = [
            models.UniqueConstraint(
                fields=["trial", "policy"],
                name="uq_trial_settings_override",
            ),
        ]

    def __str__(self) -> str:
        return f"trial:{self.trial_id}:{self.policy}={self.value}"


class ClassSettingsOverride(models.Model):
    trial_class = models.ForeignKey(
        TrialClass,
        on_delete=models.CASCADE,
        related_name="settings_overrides",
    )
    policy = models.CharField(max_length=32, choices=SettingsPolicy.choices)
    value = models.CharField(max_length=32)
    updated_by = models.CharField(max_length=255)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "ringside_class_settings_overrides"
        ordering = ["trial_class_id", "policy"]
        constraints = [
            models.UniqueConstraint(
                fields=["trial_class", "policy"],
                name="uq_class_settings_override",
            ),
        ]

    def __str__(self) -> str:
        return f"class:{self.trial_class_id}:{self.policy}={self.value}"


class SettingsAuditRecord(models.Model):
    scope = models.CharField(max_length=16, choices=SettingsScope.choices)
    scope_id = models.CharField(max_length=128)
    policy = models.CharField(max_length=32, choices=SettingsPolicy.choices)
    actor = models.CharField(max_length=255)
    from_value = models.CharField(max_length=32, null=True, blank=True)
    to_value = models.CharField(max_length=32, null=True, blank=True)
    occurred_at = models.DateTimeField()

    class Meta:
        db_table = "ringside_settings_audit"
        ordering = ["-occurred_at", "-id"]
        indexes = [
            models.Index(fields=["scope", "scope_id"], name="idx_settings_audit_scope"),
        ]

    def __str__(self) -> str:
        return f"{self.scope}:{self.scope_id}:{self.policy} {self.from_value}->{self.to_value}"
