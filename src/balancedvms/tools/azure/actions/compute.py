from __future__ import annotations

from collections.abc import Callable
from typing import Any

from balancedvms.core.config import SampleConfig
from balancedvms.core.exceptions import describe_error, fatal_step
from balancedvms.core.logging import get_logger

from ..admin import AdminCredentials
from ..clients import Clients, wait_for
from ..params import availability_set_params, vm_params
from .network import create_nic

logger = get_logger(__name__)


@fatal_step("Create availability set failed")
async def create_availability_set(*, clients: Clients, layout: SampleConfig) -> Any:
    avset = await clients.run(
        clients.cmp.availability_sets.create_or_update,
        layout.resource_group,
        layout.availability_set_name,
        availability_set_params(layout),
    )
    avset = await wait_for(clients, avset)
    logger.info("availability_set.created", id=avset.id)
    return avset


async def create_vm(
    *,
    clients: Clients,
    layout: SampleConfig,
    admin: AdminCredentials,
    vm_name: str,
    subnet_id: str,
    availability_set_id: str,
    load_balancer: Any,
    nat_rule_index: int,
    public_ip_address: str | None,
    echo: Callable[[str], None] = print,
) -> tuple[str, Any]:
    """Create the NIC for ``vm_name`` and then the VM itself.

    Returns ``("created", vm)`` or ``("error", exc)``. The VM is never
    requested when the NIC could not be created.
    """
    echo(f"Starting to create NIC for '{vm_name}' machine")
    try:
        nic = await create_nic(
            clients=clients,
            layout=layout,
            nic_name=f"nic-{vm_name}",
            subnet_id=subnet_id,
            load_balancer=load_balancer,
            nat_rule_index=nat_rule_index,
        )
    except Exception as exc:
        logger.error("vm.nic_failed", vm=vm_name, error_message=describe_error(exc))
        echo("Create NIC failed")
        return "error", exc
    echo("NIC created")

    echo(f"Starting to create machine '{vm_name}'")
    try:
        poller = await clients.run(
            clients.cmp.virtual_machines.begin_create_or_update,
            layout.resource_group,
            vm_name,
            vm_params(vm_name, nic.id, availability_set_id, admin, layout),
        )
        vm = await wait_for(clients, poller)
    except Exception as exc:
        logger.error("vm.create_failed", vm=vm_name, error_message=describe_error(exc))
        echo("Create VM failed")
        return "error", exc
    echo("VM created")
    logger.info("vm.created", vm=vm_name, id=getattr(vm, "id", None))

    port = load_balancer.inbound_nat_rules[nat_rule_index].frontend_port
    hint = (
        f"Now you can connect to '{vm_name}' via "
        f"'ssh {admin.username}@{public_ip_address} -p {port}'"
    )
    if layout.show_admin_password:
        hint += f" with password '{admin.password.get_secret_value()}'"
    echo(hint)
    return "created", vm
