"""Request bodies for every resource the sample creates.

All builders are pure: they take names and ids and return the plain dict
payload the ``azure-mgmt-*`` operations accept. Nothing here talks to Azure.
"""

from __future__ import annotations

from typing import Any

from balancedvms.core.config import SampleConfig
from balancedvms.tools.azure.admin import AdminCredentials
from balancedvms.tools.azure.ids import load_balancer_child_id, vhd_uri

SSH_PORT = 22
HTTP_PORT = 80
IDLE_TIMEOUT_MINUTES = 4


def resource_group_params(layout: SampleConfig) -> dict[str, Any]:
    return {"location": layout.location}


def storage_account_params(layout: SampleConfig) -> dict[str, Any]:
    return {
        "location": layout.location,
        "sku": {"name": "Standard_LRS"},
        "kind": "Storage",
    }


def public_ip_params(layout: SampleConfig) -> dict[str, Any]:
    return {
        "location": layout.location,
        "public_ip_allocation_method": "Static",
        "dns_settings": {"domain_name_label": layout.dns_label},
    }


def _lb_child_ref(
    subscription_id: str, layout: SampleConfig, sub_type: str, name: str
) -> dict[str, str]:
    return {
        "id": load_balancer_child_id(
            subscription_id, layout.resource_group, layout.load_balancer_name, sub_type, name
        )
    }


def nat_rule_params(
    name: str,
    subscription_id: str,
    frontend_port: int,
    layout: SampleConfig | None = None,
) -> dict[str, Any]:
    """Inbound NAT rule forwarding ``frontend_port`` to SSH on one backend VM."""
    layout = layout or SampleConfig()
    return {
        "name": name,
        "protocol": "Tcp",
        "frontend_port": frontend_port,
        "backend_port": SSH_PORT,
        "enable_floating_ip": False,
        "idle_timeout_in_minutes": IDLE_TIMEOUT_MINUTES,
        "frontend_ip_configuration": _lb_child_ref(
            subscription_id, layout, "frontendIPConfigurations", layout.frontend_ip_config_name
        ),
    }


def load_balancer_params(
    subscription_id: str, public_ip: Any, layout: SampleConfig
) -> dict[str, Any]:
    nat_rules = [
        nat_rule_params(f"natRule{i}", subscription_id, port, layout)
        for i, port in enumerate(layout.nat_frontend_ports, start=1)
    ]
    return {
        "location": layout.location,
        "frontend_ip_configurations": [
            {
                "name": layout.frontend_ip_config_name,
                "private_ip_allocation_method": "Dynamic",
                "public_ip_address": {"id": public_ip.id},
            }
        ],
        "backend_address_pools": [{"name": layout.backend_pool_name}],
        "probes": [
            {
                "name": layout.probe_name,
                "protocol": "Http",
                "port": HTTP_PORT,
                "interval_in_seconds": 15,
                "number_of_probes": 4,
                "request_path": "/healthprobe.aspx",
            }
        ],
        "load_balancing_rules": [
            {
                "name": "lbRule",
                "protocol": "Tcp",
                "frontend_port": HTTP_PORT,
                "backend_port": HTTP_PORT,
                "idle_timeout_in_minutes": IDLE_TIMEOUT_MINUTES,
                "enable_floating_ip": False,
                "load_distribution": "Default",
                "frontend_ip_configuration": _lb_child_ref(
                    subscription_id,
                    layout,
                    "frontendIPConfigurations",
                    layout.frontend_ip_config_name,
                ),
                "backend_address_pool": _lb_child_ref(
                    subscription_id, layout, "backendAddressPools", layout.backend_pool_name
                ),
                "probe": _lb_child_ref(subscription_id, layout, "probes", layout.probe_name),
            }
        ],
        "inbound_nat_rules": nat_rules,
    }


def vnet_params(layout: SampleConfig) -> dict[str, Any]:
    return {
        "location": layout.location,
        "address_space": {"address_prefixes": [layout.vnet_address_prefix]},
    }


def subnet_params(layout: SampleConfig) -> dict[str, Any]:
    return {"address_prefix": layout.subnet_address_prefix}


def availability_set_params(layout: SampleConfig) -> dict[str, Any]:
    # unmanaged VHD disks need the Classic SKU
    return {"location": layout.location, "sku": {"name": "Classic"}}


def nic_params(
    subnet_id: str, load_balancer: Any, nat_rule_index: int, location: str
) -> dict[str, Any]:
    """NIC attached to the subnet, backend pool 0 and one NAT rule of the live load balancer."""
    pools = load_balancer.backend_address_pools or []
    nat_rules = load_balancer.inbound_nat_rules or []
    if not pools:
        raise ValueError("load balancer has no backend address pools")
    if not 0 <= nat_rule_index < len(nat_rules):
        raise ValueError(
            f"load balancer has no inbound NAT rule at index {nat_rule_index}"
        )
    return {
        "location": location,
        "ip_configurations": [
            {
                "name": "pipConfig",
                "subnet": {"id": subnet_id},
                "load_balancer_backend_address_pools": [{"id": pools[0].id}],
                "load_balancer_inbound_nat_rules": [{"id": nat_rules[nat_rule_index].id}],
            }
        ],
    }


def vm_params(
    vm_name: str,
    nic_id: str,
    availability_set_id: str,
    admin: AdminCredentials,
    layout: SampleConfig,
) -> dict[str, Any]:
    image = layout.image
    return {
        "location": layout.location,
        "os_profile": {
            "computer_name": vm_name,
            "admin_username": admin.username,
            "admin_password": admin.password.get_secret_value(),
        },
        "hardware_profile": {"vm_size": layout.vm_size},
        "storage_profile": {
            "image_reference": {
                "publisher": image.publisher,
                "offer": image.offer,
                "sku": image.sku,
                "version": image.version,
            },
            "os_disk": {
                "name": "osDisk",
                "caching": "None",
                "create_option": "FromImage",
                "vhd": {
                    "uri": vhd_uri(layout.storage_account_name, vm_name, layout.vhd_container)
                },
            },
        },
        "network_profile": {"network_interfaces": [{"id": nic_id, "primary": True}]},
        "availability_set": {"id": availability_set_id},
    }
