"""Utility Functions"""

from goldguard_core.utils.resilience import (
    service_startup_retry,
    create_custom_retry,
)

__all__ = [
    "service_startup_retry",
    "create_custom_retry",
]
