"""
Ringside Settings Store - App Configuration
===========================================
Persistent show defaults, trial/class overrides and settings audit rows.
"""

from django.apps import AppConfig


class SettingsStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.settings_store"
    label = "settings_store"
    verbose_name = "Ringside Settings Store"
