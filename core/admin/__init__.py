"""
Ringside Admin - Public API
===========================
"""

from core.admin.bulk import BulkOperationCoordinator
from core.admin.releases import ResultsReleaseController
from core.admin.service import CompetitionAdminService
from core.admin.settings import (
    CascadeSettingsController,
    SelfCheckinSettingsController,
    VisibilitySettingsController,
)
from core.policies.errors import (
    ErrorCode,
    PersistenceError,
    SettingsError,
    ValidationError,
)

__all__ = [
    "BulkOperationCoordinator",
    "CascadeSettingsController",
    "CompetitionAdminService",
    "ResultsReleaseController",
    "SelfCheckinSettingsController",
    "VisibilitySettingsController",
    "ErrorCode",
    "PersistenceError",
    "SettingsError",
    "ValidationError",
]
