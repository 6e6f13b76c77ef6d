"""Write a mutated case back to the store that holds it."""

import logging
from typing import Optional

from goldguard_core.auth.token_provider import TokenProvider
from goldguard_core.clients.case_api_client import CaseApiClient
from goldguard_core.exceptions import PersistenceError, RemoteUnavailable
from goldguard_core.models.api_models import CaseUpdateRequest
from goldguard_core.models.case import Case
from goldguard_core.storage.base import CaseRepository

logger = logging.getLogger(__name__)


async def write_back(
    case: Case,
    update: CaseUpdateRequest,
    repository: CaseRepository,
    client: Optional[CaseApiClient],
    token_provider: TokenProvider,
) -> bool:
    """
    Persist a change: local-pending cases go to the repository, remote cases
    are PUT to the case API.

    Returns:
        True if the write succeeded. Failures are logged, never raised.
    """
    if case.is_local_pending:
        try:
            await repository.put(case)
            return True
        except PersistenceError as e:
            logger.error(f"Could not save {case.case_id} locally: {e}")
            return False

    if client is None:
        logger.warning(f"No case API client; change to {case.case_id} kept in memory only")
        return False
    token = await token_provider.get_token()
    try:
        await client.update_case(case.case_id, update, token)
        return True
    except RemoteUnavailable as e:
        logger.error(f"Could not send change to {case.case_id} to case API: {e}")
        if e.is_auth_failure:
            await token_provider.invalidate_token()
        return False
