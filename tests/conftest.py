from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from pydantic import SecretStr

from balancedvms.core.config import SampleConfig
from balancedvms.core.logging import configure_logging
from balancedvms.tools.azure.admin import AdminCredentials
from balancedvms.tools.azure.clients import Clients
from balancedvms.workflow import WorkflowContext

SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"

configure_logging(level="WARNING", fmt="text")


class FakeAsyncPoller:
    def __init__(self, azure: FakeAzure, name: str, value: Any) -> None:
        self._azure = azure
        self._name = name
        self._value = value

    def status(self) -> str:
        return "InProgress"

    async def result(self) -> Any:
        self._azure.record(f"{self._name}:result", ())
        return self._value


class FakeSyncPoller(FakeAsyncPoller):
    def result(self) -> Any:  # type: ignore[override]
        self._azure.record(f"{self._name}:result", ())
        return self._value


class FakeAzure:
    """Records every SDK call in order; raises for names listed in ``fail_on``."""

    def __init__(self, subscription_id: str = SUBSCRIPTION_ID) -> None:
        self.subscription_id = subscription_id
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.fail_on: dict[str, Exception] = {}

    def record(self, name: str, args: tuple[Any, ...]) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise self.fail_on[name]

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def args_of(self, name: str) -> list[tuple[Any, ...]]:
        return [args for n, args in self.calls if n == name]

    def _arm_id(self, rg: str, provider: str, kind: str, name: str) -> str:
        return (
            f"/subscriptions/{self.subscription_id}/resourceGroups/{rg}"
            f"/providers/{provider}/{kind}/{name}"
        )

    def _async(self, name: str, make: Any, poller: bool = True) -> Any:
        async def op(*args: Any) -> Any:
            self.record(name, args)
            value = make(*args)
            return FakeAsyncPoller(self, name, value) if poller else value

        return op

    def _sync(self, name: str, make: Any, poller: bool = False) -> Any:
        def op(*args: Any) -> Any:
            self.record(name, args)
            value = make(*args)
            return FakeSyncPoller(self, name, value) if poller else value

        return op

    def _load_balancer(self, rg: str, name: str, params: dict[str, Any]) -> Any:
        lb_id = self._arm_id(rg, "Microsoft.Network", "loadBalancers", name)
        return SimpleNamespace(
            id=lb_id,
            name=name,
            backend_address_pools=[
                SimpleNamespace(id=f"{lb_id}/backendAddressPools/{p['name']}")
                for p in params["backend_address_pools"]
            ],
            inbound_nat_rules=[
                SimpleNamespace(
                    id=f"{lb_id}/inboundNatRules/{r['name']}", frontend_port=r["frontend_port"]
                )
                for r in params["inbound_nat_rules"]
            ],
        )

    def clients(self) -> Clients:
        net_id = "Microsoft.Network"
        res = SimpleNamespace(
            resource_groups=SimpleNamespace(
                create_or_update=self._sync(
                    "resource_groups.create_or_update",
                    lambda rg, params: SimpleNamespace(
                        id=f"/subscriptions/{self.subscription_id}/resourceGroups/{rg}", name=rg
                    ),
                ),
                begin_delete=self._sync(
                    "resource_groups.begin_delete", lambda rg: None, poller=True
                ),
            ),
            resources=SimpleNamespace(
                list_by_resource_group=self._sync(
                    "resources.list_by_resource_group",
                    lambda rg: [
                        SimpleNamespace(name="Web1", type="Microsoft.Compute/virtualMachines"),
                        SimpleNamespace(name="lb", type="Microsoft.Network/loadBalancers"),
                    ],
                ),
            ),
        )
        stor = SimpleNamespace(
            storage_accounts=SimpleNamespace(
                begin_create=self._async(
                    "storage_accounts.begin_create",
                    lambda rg, name, params: SimpleNamespace(
                        id=self._arm_id(rg, "Microsoft.Storage", "storageAccounts", name)
                    ),
                )
            )
        )
        net = SimpleNamespace(
            public_ip_addresses=SimpleNamespace(
                begin_create_or_update=self._async(
                    "public_ip_addresses.begin_create_or_update",
                    lambda rg, name, params: SimpleNamespace(
                        id=self._arm_id(rg, net_id, "publicIPAddresses", name),
                        ip_address="40.112.0.10",
                    ),
                )
            ),
            load_balancers=SimpleNamespace(
                begin_create_or_update=self._async(
                    "load_balancers.begin_create_or_update", self._load_balancer
                )
            ),
            virtual_networks=SimpleNamespace(
                begin_create_or_update=self._async(
                    "virtual_networks.begin_create_or_update",
                    lambda rg, name, params: SimpleNamespace(
                        id=self._arm_id(rg, net_id, "virtualNetworks", name)
                    ),
                )
            ),
            subnets=SimpleNamespace(
                begin_create_or_update=self._async(
                    "subnets.begin_create_or_update",
                    lambda rg, vnet, name, params: SimpleNamespace(id=None),
                ),
                get=self._async(
                    "subnets.get",
                    lambda rg, vnet, name: SimpleNamespace(
                        id=self._arm_id(rg, net_id, "virtualNetworks", f"{vnet}/subnets/{name}")
                    ),
                    poller=False,
                ),
            ),
            network_interfaces=SimpleNamespace(
                begin_create_or_update=self._async(
                    "network_interfaces.begin_create_or_update",
                    lambda rg, name, params: SimpleNamespace(
                        id=self._arm_id(rg, net_id, "networkInterfaces", name)
                    ),
                )
            ),
        )
        cmp = SimpleNamespace(
            availability_sets=SimpleNamespace(
                create_or_update=self._async(
                    "availability_sets.create_or_update",
                    lambda rg, name, params: SimpleNamespace(
                        id=self._arm_id(rg, "Microsoft.Compute", "availabilitySets", name)
                    ),
                    poller=False,
                )
            ),
            virtual_machines=SimpleNamespace(
                begin_create_or_update=self._async(
                    "virtual_machines.begin_create_or_update",
                    lambda rg, name, params: SimpleNamespace(
                        id=self._arm_id(rg, "Microsoft.Compute", "virtualMachines", name)
                    ),
                )
            ),
        )
        return Clients(
            subscription_id=self.subscription_id,
            cred=object(),  # type: ignore[arg-type]
            cred_sync=object(),  # type: ignore[arg-type]
            res=res,  # type: ignore[arg-type]
            stor=stor,  # type: ignore[arg-type]
            net=net,  # type: ignore[arg-type]
            cmp=cmp,  # type: ignore[arg-type]
        )


@pytest.fixture
def azure() -> FakeAzure:
    return FakeAzure()


@pytest.fixture
def layout() -> SampleConfig:
    return SampleConfig()


@pytest.fixture
def admin() -> AdminCredentials:
    return AdminCredentials(username="notAdmin", password=SecretStr("Sup3r-Secret-Value!"))


@pytest.fixture
def output() -> list[str]:
    return []


@pytest.fixture
def ctx(
    azure: FakeAzure, layout: SampleConfig, admin: AdminCredentials, output: list[str]
) -> WorkflowContext:
    def prompt(text: str) -> str:
        azure.record("prompt", (text,))
        return ""

    return WorkflowContext(
        clients=azure.clients(),
        layout=layout,
        admin=admin,
        echo=output.append,
        prompt=prompt,
    )
