import asyncio
import threading
from types import SimpleNamespace

import pytest

from balancedvms.core.config import AzureConfig
from balancedvms.core.exceptions import AuthenticationException
from balancedvms.tools.azure import clients as azure_clients
from balancedvms.tools.azure.clients import Clients, wait_for

from conftest import FakeAzure


def _clients() -> Clients:
    return FakeAzure().clients()


def test_run_calls_sync_function_once_off_the_loop() -> None:
    async def run() -> None:
        seen: list[str] = []

        def work(x: int) -> int:
            seen.append(threading.current_thread().name)
            return x * 2

        assert await _clients().run(work, 21) == 42
        assert len(seen) == 1
        assert seen[0] != threading.main_thread().name

    asyncio.run(run())


def test_run_awaits_coroutine_functions() -> None:
    async def run() -> None:
        async def work(x: int, *, y: int) -> int:
            return x + y

        assert await _clients().run(work, 1, y=2) == 3

    asyncio.run(run())


def test_wait_for_passes_plain_results_through() -> None:
    async def run() -> None:
        model = SimpleNamespace(id="avset-id")
        assert await wait_for(_clients(), model) is model

    asyncio.run(run())


def test_wait_for_resolves_pollers() -> None:
    async def run() -> None:
        azure = FakeAzure()
        clients = azure.clients()
        poller = await clients.run(
            clients.net.virtual_networks.begin_create_or_update, "rg", "vNet", {}
        )
        vnet = await wait_for(clients, poller)
        assert vnet.id.endswith("/virtualNetworks/vNet")
        assert azure.names[-1] == "virtual_networks.begin_create_or_update:result"

    asyncio.run(run())


def test_close_tolerates_clients_without_close() -> None:
    asyncio.run(_clients().close())


def test_build_clients_fails_before_any_client_on_bad_login(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    closed: list[bool] = []

    class BrokenCredential:
        async def get_token(self, *scopes: str):
            raise RuntimeError("Please run 'az login'")

        async def close(self) -> None:
            closed.append(True)

    def no_sync_credential(cfg: AzureConfig):
        raise AssertionError("sync credential must not be built")

    monkeypatch.setattr(azure_clients, "build_async_credential", lambda cfg: BrokenCredential())
    monkeypatch.setattr(azure_clients, "build_credential", no_sync_credential)

    with pytest.raises(AuthenticationException, match="az login"):
        asyncio.run(azure_clients.build_clients(AzureConfig(), "sid"))
    assert closed == [True]


def test_build_clients_targets_the_configured_cloud(monkeypatch: pytest.MonkeyPatch) -> None:
    built: dict[str, dict] = {}

    def recorder(kind: str):
        def make(credential, subscription_id, **kwargs):
            built[kind] = {"subscription_id": subscription_id, **kwargs}
            return SimpleNamespace()

        return make

    class GoodCredential:
        scopes: tuple[str, ...] = ()

        async def get_token(self, *scopes: str):
            GoodCredential.scopes = scopes
            return SimpleNamespace(token="tok", expires_on=0)

    monkeypatch.setattr(azure_clients, "build_async_credential", lambda cfg: GoodCredential())
    monkeypatch.setattr(azure_clients, "build_credential", lambda cfg: object())
    for name in (
        "ResourceManagementClient",
        "StorageManagementClient",
        "NetworkManagementClient",
        "ComputeManagementClient",
    ):
        monkeypatch.setattr(azure_clients, name, recorder(name))

    cfg = AzureConfig(cloud="china")
    clients = asyncio.run(azure_clients.build_clients(cfg, "sid"))

    assert clients.subscription_id == "sid"
    assert GoodCredential.scopes == ("https://management.chinacloudapi.cn/.default",)
    assert len(built) == 4
    for kwargs in built.values():
        assert kwargs["subscription_id"] == "sid"
        assert kwargs["base_url"] == "https://management.chinacloudapi.cn"
        assert kwargs["credential_scopes"] == ["https://management.chinacloudapi.cn/.default"]
        assert kwargs["user_agent"] == cfg.user_agent
