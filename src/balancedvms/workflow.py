"""The provisioning run: twelve steps in strict dependency order.

Every cross-resource reference is taken from a completed call, except the
load balancer's references to its own children, which are predicted ids.
A failing step raises ``StepFailedError`` and nothing is rolled back.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from balancedvms.core.config import SampleConfig
from balancedvms.core.exceptions import StepFailedError
from balancedvms.core.logging import add_context, get_logger
from balancedvms.tools.azure.actions.compute import create_availability_set, create_vm
from balancedvms.tools.azure.actions.network import (
    create_load_balancer,
    create_public_ip,
    create_subnet,
    create_vnet,
    get_subnet,
)
from balancedvms.tools.azure.actions.resource_groups import (
    create_resource_group,
    delete_resource_group,
    list_resources,
)
from balancedvms.tools.azure.actions.storage import (
    begin_storage_account,
    finish_storage_account,
)
from balancedvms.tools.azure.admin import AdminCredentials
from balancedvms.tools.azure.clients import Clients

logger = get_logger(__name__)


@dataclass
class WorkflowContext:
    clients: Clients
    layout: SampleConfig
    admin: AdminCredentials
    echo: Callable[[str], None] = print
    prompt: Callable[[str], str] = input

    @property
    def subscription_id(self) -> str:
        return self.clients.subscription_id


@dataclass
class RunState:
    """What earlier steps produced for later ones."""

    public_ip: Any = None
    load_balancer: Any = None
    subnet: Any = None
    availability_set: Any = None
    storage_account: Any = None
    vms: list[Any] = field(default_factory=list)
    resources: list[Any] = field(default_factory=list)


class ProvisioningWorkflow:
    def __init__(self, ctx: WorkflowContext) -> None:
        self.ctx = ctx
        self.state = RunState()

    async def run(self) -> RunState:
        ctx, layout, clients, echo = self.ctx, self.ctx.layout, self.ctx.clients, self.ctx.echo
        add_context(resource_group=layout.resource_group)
        logger.info("workflow.start", location=layout.location)

        echo("Creating resource group")
        await create_resource_group(clients=clients, layout=layout)

        echo("Starting to create storage account...")
        pending_storage = await begin_storage_account(clients=clients, layout=layout)

        echo("Starting to create public IP address...")
        self.state.public_ip = await create_public_ip(clients=clients, layout=layout)
        echo("... public IP created")

        echo("Starting to create load balancer...")
        self.state.load_balancer = await create_load_balancer(
            clients=clients, layout=layout, public_ip=self.state.public_ip
        )
        echo("... load balancer created")

        echo("Starting to create virtual network...")
        await create_vnet(clients=clients, layout=layout)
        echo("... virtual network created")

        echo("Starting to create subnet...")
        await create_subnet(clients=clients, layout=layout)
        echo("... subnet created")
        self.state.subnet = await get_subnet(clients=clients, layout=layout)

        echo("Creating availability set")
        self.state.availability_set = await create_availability_set(
            clients=clients, layout=layout
        )

        self.state.storage_account = await finish_storage_account(
            clients=clients, pending=pending_storage
        )
        echo("... storage account created")

        for nat_rule_index, vm_name in enumerate(layout.vm_names):
            echo(f"Creating virtual machine '{vm_name}'")
            status, result = await create_vm(
                clients=clients,
                layout=layout,
                admin=ctx.admin,
                vm_name=vm_name,
                subnet_id=self.state.subnet.id,
                availability_set_id=self.state.availability_set.id,
                load_balancer=self.state.load_balancer,
                nat_rule_index=nat_rule_index,
                public_ip_address=getattr(self.state.public_ip, "ip_address", None),
                echo=echo,
            )
            if status != "created":
                raise StepFailedError(f"Create VM '{vm_name}' failed", cause=result)
            self.state.vms.append(result)

        echo("Listing resources in resource group")
        self.state.resources = await list_resources(
            clients=clients, resource_group=layout.resource_group
        )
        echo(f"Resources in '{layout.resource_group}' resource group")
        for r in self.state.resources:
            echo(f"----------------\nName: {r.name}\nType: {r.type}")

        echo("Your load balancer and virtual machines have been created.")
        await self._wait_for_operator()

        echo("Starting to delete the resource group...")
        await delete_resource_group(clients=clients, resource_group=layout.resource_group)
        echo("... resource group deleted")

        echo("Done!")
        logger.info("workflow.done", vms=len(self.state.vms))
        return self.state

    async def _wait_for_operator(self) -> None:
        if self.ctx.layout.skip_teardown_prompt:
            return
        try:
            await asyncio.to_thread(
                self.ctx.prompt, "Press enter to delete the resources created in this sample..."
            )
        except EOFError:
            # stdin closed: same as pressing enter
            self.ctx.echo("")


async def run_workflow(ctx: WorkflowContext) -> RunState:
    return await ProvisioningWorkflow(ctx).run()
