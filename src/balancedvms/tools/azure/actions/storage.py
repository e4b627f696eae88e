from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from balancedvms.core.config import SampleConfig
from balancedvms.core.exceptions import describe_error, fatal_step
from balancedvms.core.logging import get_logger

from ..clients import Clients, wait_for
from ..params import storage_account_params

logger = get_logger(__name__)


@dataclass
class PendingStorageAccount:
    poller: Any = None
    error: Exception | None = None


async def begin_storage_account(
    *, clients: Clients, layout: SampleConfig
) -> PendingStorageAccount:
    """Submit the storage account without waiting for it.

    A rejected submission is held and only surfaces when the account is
    awaited in ``finish_storage_account``.
    """
    logger.info("storage_account.begin", name=layout.storage_account_name)
    try:
        poller = await clients.run(
            clients.stor.storage_accounts.begin_create,
            layout.resource_group,
            layout.storage_account_name,
            storage_account_params(layout),
        )
    except Exception as exc:
        logger.warning(
            "storage_account.begin_failed",
            name=layout.storage_account_name,
            error_message=describe_error(exc),
        )
        return PendingStorageAccount(error=exc)
    return PendingStorageAccount(poller=poller)


@fatal_step("Create storage account failed")
async def finish_storage_account(*, clients: Clients, pending: PendingStorageAccount) -> Any:
    if pending.error is not None:
        raise pending.error
    account = await wait_for(clients, pending.poller)
    logger.info("storage_account.created", id=getattr(account, "id", None))
    return account
