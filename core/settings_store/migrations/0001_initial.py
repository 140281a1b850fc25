from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ShowSettingsDefault",
            fields=[
                ("license_key", models.CharField(max_length=128, primary_key=True, serialize=False)),
                (
                    "visibility_preset",
                    models.CharField(
                        choices=[("open", "Open"), ("standard", "Standard"), ("review", "Review")],
                        default="standard",
                        max_length=16,
                    ),
                ),
                ("self_checkin_enabled", models.BooleanField(default=True)),
                ("updated_by", models.CharField(blank=True, default="", max_length=255)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "ringside_show_settings_defaults",
            },
        ),
        migrations.CreateModel(
            name="Trial",
            fields=[
                ("id", models.BigIntegerField(primary_key=True, serialize=False)),
                ("license_key", models.CharField(db_index=True, max_length=128)),
                ("trial_number", models.PositiveSmallIntegerField(default=1)),
                ("trial_date", models.DateField(blank=True, null=True)),
            ],
            options={
                "db_table": "ringside_trials",
                "ordering": ["trial_date", "trial_number", "id"],
            },
        ),
        migrations.CreateModel(
            name="TrialClass",
            fields=[
                ("id", models.BigIntegerField(primary_key=True, serialize=False)),
                ("element", models.CharField(max_length=64)),
                ("level", models.CharField(max_length=64)),
                ("section", models.CharField(blank=True, default="", max_length=16)),
                (
                    "trial",
                    models.ForeignKey(
                        on_delete=models.deletion.CASCADE,
                        related_name="classes",
                        to="settings_store.trial",
                    ),
                ),
            ],
            options={
                "db_table": "ringside_classes",
                "ordering": ["trial_id", "element", "level", "section", "id"],
            },
        ),
        migrations.CreateModel(
            name="TrialSettingsOverride",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "policy",
                    models.CharField(
                        choices=[("visibility", "Result Visibility"), ("self_checkin", "Self Check-in")],
                        max_length=32,
                    ),
                ),
                ("value", models.CharField(max_length=32)),
                ("updated_by", models.CharField(max_length=255)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "trial",
                    models.ForeignKey(
                        on_delete=models.deletion.CASCADE,
                        related_name="settings_overrides",
                        to="settings_store.trial",
                    ),
                ),
            ],
            options={
                "db_table": "ringside_trial_settings_overrides",
                "ordering": ["trial_id", "policy"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("trial", "policy"),
                        name="uq_trial_settings_override",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ClassSettingsOverride",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "policy",
                    models.CharField(
                        choices=[("visibility", "Result Visibility"), ("self_checkin", "Self Check-in")],
                        max_length=32,
                    ),
                ),
                ("value", models.CharField(max_length=32)),
                ("updated_by", models.CharField(max_length=255)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "trial_class",
                    models.ForeignKey(
                        on_delete=models.deletion.CASCADE,
                        related_name="settings_overrides",
                        to="settings_store.trialclass",
                    ),
                ),
            ],
            options={
                "db_table": "ringside_class_settings_overrides",
                "ordering": ["trial_class_id", "policy"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("trial_class", "policy"),
                        name="uq_class_settings_override",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SettingsAuditRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "scope",
                    models.CharField(
                        choices=[("show", "Show Level"), ("trial", "Trial Level"), ("class", "Class Level")],
                        max_length=16,
                    ),
                ),
                ("scope_id", models.CharField(max_length=128)),
                (
                    "policy",
                    models.CharField(
                        choices=[("visibility", "Result Visibility"), ("self_checkin", "Self Check-in")],
                        max_length=32,
                    ),
                ),
                ("actor", models.CharField(max_length=255)),
                ("from_value", models.CharField(blank=True, max_length=32, null=True)),
                ("to_value", models.CharField(blank=True, max_length=32, null=True)),
                ("occurred_at", models.DateTimeField()),
            ],
            options={
                "db_table": "ringside_settings_audit",
                "ordering": ["-occurred_at", "-id"],
                "indexes": [
                    models.Index(fields=["scope", "scope_id"], name="idx_settings_audit_scope"),
                ],
            },
        ),
    ]
