"""HTTP clients for the GoldGuard backend"""

from goldguard_core.clients.base import BaseApiClient
from goldguard_core.clients.case_api_client import CaseApiClient

__all__ = ["BaseApiClient", "CaseApiClient"]
