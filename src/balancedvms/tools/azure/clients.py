from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from azure.core.credentials import TokenCredential
from azure.core.credentials_async import AsyncTokenCredential
from azure.mgmt.compute.aio import ComputeManagementClient
from azure.mgmt.network.aio import NetworkManagementClient
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.storage.aio import StorageManagementClient

from balancedvms.core.azure_auth import (
    arm_scopes,
    build_async_credential,
    build_credential,
    resource_manager_endpoint,
    verify_credential_async,
)
from balancedvms.core.config import AzureConfig
from balancedvms.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Clients:
    subscription_id: str
    cred: AsyncTokenCredential
    cred_sync: TokenCredential
    res: ResourceManagementClient
    stor: StorageManagementClient
    net: NetworkManagementClient
    cmp: ComputeManagementClient

    async def run(
        self, fn: Callable[..., Any] | Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> Any:
        if inspect.iscoroutinefunction(fn):
            return await fn(*args, **kwargs)
        res = await asyncio.to_thread(fn, *args, **kwargs)
        if inspect.isawaitable(res):
            return await res
        return res

    async def close(self) -> None:
        for attr in ("res", "stor", "net", "cmp"):
            try:
                close = getattr(getattr(self, attr), "close", None)
                if not callable(close):
                    continue
                if inspect.iscoroutinefunction(close):
                    await close()
                else:
                    await asyncio.to_thread(close)
            except Exception as e:
                logger.debug("azure_clients.close_error", client=attr, error=str(e))

        try:
            cclose = getattr(self.cred, "close", None)
            if callable(cclose):
                await cclose()
        except Exception as e:
            logger.debug("azure_clients.close_error", client="cred", error=str(e))

        try:
            sclose = getattr(self.cred_sync, "close", None)
            if callable(sclose):
                await asyncio.to_thread(sclose)
        except Exception as e:
            logger.debug("azure_clients.close_error", client="cred_sync", error=str(e))


async def build_clients(cfg: AzureConfig, subscription_id: str) -> Clients:
    logger.debug("azure_clients.build.start", subscription_id=subscription_id)
    scopes = list(arm_scopes(cfg))
    options: dict[str, Any] = {
        "base_url": resource_manager_endpoint(cfg),
        "credential_scopes": scopes,
        "user_agent": cfg.user_agent,
    }
    cred_async = build_async_credential(cfg)
    try:
        await verify_credential_async(cred_async, scopes)
        cred_sync = build_credential(cfg)
        clients = Clients(
            subscription_id=subscription_id,
            cred=cred_async,
            cred_sync=cred_sync,
            res=ResourceManagementClient(cred_sync, subscription_id, **options),
            stor=StorageManagementClient(cred_async, subscription_id, **options),
            net=NetworkManagementClient(cred_async, subscription_id, **options),
            cmp=ComputeManagementClient(cred_async, subscription_id, **options),
        )
    except Exception as exc:
        try:
            await cred_async.close()
        except Exception as close_exc:
            logger.debug("azure_clients.close_error", client="cred", error=str(close_exc))
        logger.error(
            "azure_clients.build.error",
            subscription_id=subscription_id,
            error_type=type(exc).__name__,
        )
        raise
    logger.debug("azure_clients.build.end", subscription_id=subscription_id)
    return clients


def _is_poller(obj: Any) -> bool:
    return hasattr(obj, "result") and hasattr(obj, "status")


async def wait_for(clients: Clients, poller: Any) -> Any:
    """Block until a long-running operation finishes and return its result.

    Plain results pass through, so operations that complete synchronously
    (resource group and availability set create_or_update) can share the
    call site with pollers.
    """
    if not _is_poller(poller):
        return poller
    return await clients.run(poller.result)
