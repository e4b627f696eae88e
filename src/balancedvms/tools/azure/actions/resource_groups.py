from __future__ import annotations

from typing import Any

from balancedvms.core.config import SampleConfig
from balancedvms.core.exceptions import fatal_step
from balancedvms.core.logging import get_logger

from ..clients import Clients, wait_for
from ..params import resource_group_params

logger = get_logger(__name__)


@fatal_step("Create resource group failed")
async def create_resource_group(*, clients: Clients, layout: SampleConfig) -> Any:
    logger.info(
        "resource_group.create", resource_group=layout.resource_group, location=layout.location
    )
    group = await clients.run(
        clients.res.resource_groups.create_or_update,
        layout.resource_group,
        resource_group_params(layout),
    )
    return await wait_for(clients, group)


@fatal_step("List resources failed")
async def list_resources(*, clients: Clients, resource_group: str) -> list[Any]:
    def _collect() -> list[Any]:
        return list(clients.res.resources.list_by_resource_group(resource_group))

    resources = await clients.run(_collect)
    logger.info("resource_group.list", resource_group=resource_group, count=len(resources))
    return resources


@fatal_step("Delete resource group failed")
async def delete_resource_group(*, clients: Clients, resource_group: str) -> None:
    logger.info("resource_group.delete", resource_group=resource_group)
    poller = await clients.run(clients.res.resource_groups.begin_delete, resource_group)
    await wait_for(clients, poller)
