from __future__ import annotations

from typing import Any

from balancedvms.core.config import SampleConfig
from balancedvms.core.exceptions import fatal_step
from balancedvms.core.logging import get_logger

from ..clients import Clients, wait_for
from ..params import (
    load_balancer_params,
    nic_params,
    public_ip_params,
    subnet_params,
    vnet_params,
)

logger = get_logger(__name__)


@fatal_step("Create public IP failed")
async def create_public_ip(*, clients: Clients, layout: SampleConfig) -> Any:
    poller = await clients.run(
        clients.net.public_ip_addresses.begin_create_or_update,
        layout.resource_group,
        layout.public_ip_name,
        public_ip_params(layout),
    )
    pip = await wait_for(clients, poller)
    logger.info("public_ip.created", id=pip.id, ip_address=getattr(pip, "ip_address", None))
    return pip


@fatal_step("Create load balancer failed")
async def create_load_balancer(*, clients: Clients, layout: SampleConfig, public_ip: Any) -> Any:
    poller = await clients.run(
        clients.net.load_balancers.begin_create_or_update,
        layout.resource_group,
        layout.load_balancer_name,
        load_balancer_params(clients.subscription_id, public_ip, layout),
    )
    lb = await wait_for(clients, poller)
    logger.info("load_balancer.created", id=lb.id)
    return lb


@fatal_step("Create virtual network failed")
async def create_vnet(*, clients: Clients, layout: SampleConfig) -> Any:
    poller = await clients.run(
        clients.net.virtual_networks.begin_create_or_update,
        layout.resource_group,
        layout.vnet_name,
        vnet_params(layout),
    )
    vnet = await wait_for(clients, poller)
    logger.info("vnet.created", id=vnet.id)
    return vnet


@fatal_step("Create subnet failed")
async def create_subnet(*, clients: Clients, layout: SampleConfig) -> Any:
    poller = await clients.run(
        clients.net.subnets.begin_create_or_update,
        layout.resource_group,
        layout.vnet_name,
        layout.subnet_name,
        subnet_params(layout),
    )
    return await wait_for(clients, poller)


@fatal_step("Get subnet failed")
async def get_subnet(*, clients: Clients, layout: SampleConfig) -> Any:
    subnet = await clients.run(
        clients.net.subnets.get, layout.resource_group, layout.vnet_name, layout.subnet_name
    )
    logger.info("subnet.created", id=subnet.id)
    return subnet


async def create_nic(
    *,
    clients: Clients,
    layout: SampleConfig,
    nic_name: str,
    subnet_id: str,
    load_balancer: Any,
    nat_rule_index: int,
) -> Any:
    poller = await clients.run(
        clients.net.network_interfaces.begin_create_or_update,
        layout.resource_group,
        nic_name,
        nic_params(subnet_id, load_balancer, nat_rule_index, layout.location),
    )
    nic = await wait_for(clients, poller)
    logger.info("nic.created", id=nic.id, nat_rule_index=nat_rule_index)
    return nic
