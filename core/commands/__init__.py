"""
Ringside Command Layer - Public API
===================================
Every settings action produces exactly one OperationResult.
"""

from core.commands.outcomes import OperationResult

__all__ = [
    "OperationResult",
]
