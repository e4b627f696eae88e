from __future__ import annotations

import time
from collections.abc import Sequence

from azure.core.credentials import TokenCredential
from azure.core.credentials_async import AsyncTokenCredential
from azure.identity import (
    AzureCliCredential,
    AzureDeveloperCliCredential,
    ChainedTokenCredential,
    ClientSecretCredential,
    DefaultAzureCredential,
    EnvironmentCredential,
    ManagedIdentityCredential,
)
from azure.identity.aio import AzureCliCredential as AzureCliCredentialAsync
from azure.identity.aio import AzureDeveloperCliCredential as AzureDeveloperCliCredentialAsync
from azure.identity.aio import ChainedTokenCredential as ChainedTokenCredentialAsync
from azure.identity.aio import ClientSecretCredential as ClientSecretCredentialAsync
from azure.identity.aio import DefaultAzureCredential as DefaultAzureCredentialAsync
from azure.identity.aio import EnvironmentCredential as EnvironmentCredentialAsync
from azure.identity.aio import ManagedIdentityCredential as ManagedIdentityCredentialAsync

from balancedvms.core.config import AzureConfig
from balancedvms.core.exceptions import (
    AuthenticationException,
    ConfigurationError,
    describe_error,
)
from balancedvms.core.logging import get_logger

logger = get_logger(__name__)

_CLOUD_HOSTS = {
    "public": "https://login.microsoftonline.com",
    "usgov": "https://login.microsoftonline.us",
    "china": "https://login.chinacloudapi.cn",
}

_ARM_ENDPOINTS = {
    "public": "https://management.azure.com",
    "usgov": "https://management.usgovcloudapi.net",
    "china": "https://management.chinacloudapi.cn",
}


def _authority_host(cfg: AzureConfig) -> str:
    if cfg.authority_host:
        return cfg.authority_host.rstrip("/")
    return _CLOUD_HOSTS.get(cfg.cloud, _CLOUD_HOSTS["public"])


def _require_service_principal(cfg: AzureConfig) -> tuple[str, str, str]:
    missing = [
        name
        for name, value in (
            ("AZURE_TENANT_ID", cfg.tenant_id),
            ("AZURE_CLIENT_ID", cfg.client_id),
            ("AZURE_CLIENT_SECRET", cfg.client_secret),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(
            ", ".join(missing), "required when AZURE__AUTH_MODE is service_principal"
        )
    secret = cfg.client_secret.get_secret_value()  # type: ignore[union-attr]
    return str(cfg.tenant_id), str(cfg.client_id), secret


def build_credential(cfg: AzureConfig) -> TokenCredential:
    authority = _authority_host(cfg)
    start = time.perf_counter()
    logger.debug("build_credential.start", auth_mode=cfg.auth_mode, authority=authority)
    credential: TokenCredential
    if cfg.auth_mode == "service_principal":
        tenant_id, client_id, secret = _require_service_principal(cfg)
        credential = ClientSecretCredential(
            tenant_id=tenant_id, client_id=client_id, client_secret=secret, authority=authority
        )
    elif cfg.auth_mode == "managed_identity":
        credential = ManagedIdentityCredential(client_id=cfg.user_assigned_identity_client_id)
    elif cfg.auth_mode == "azure_cli":
        credential = AzureCliCredential()
    elif cfg.auth_mode == "environment":
        credential = EnvironmentCredential(authority=authority)
    else:
        credentials: list[TokenCredential] = []
        try:
            credentials.append(EnvironmentCredential(authority=authority))
        except Exception as e:
            logger.debug("EnvironmentCredential unavailable", error=str(e))
        try:
            credentials.append(ManagedIdentityCredential())
        except Exception as e:
            logger.debug("ManagedIdentityCredential unavailable", error=str(e))
        if cfg.enable_cli_fallback:
            credentials.append(AzureCliCredential())
            credentials.append(AzureDeveloperCliCredential())
        credential = (
            ChainedTokenCredential(*credentials)
            if credentials
            else DefaultAzureCredential(authority=authority)
        )
    logger.debug(
        "build_credential.end", duration_ms=(time.perf_counter() - start) * 1000.0
    )
    return credential


def build_async_credential(cfg: AzureConfig) -> AsyncTokenCredential:
    authority = _authority_host(cfg)
    logger.debug("build_async_credential.start", auth_mode=cfg.auth_mode, authority=authority)
    credential: AsyncTokenCredential
    if cfg.auth_mode == "service_principal":
        tenant_id, client_id, secret = _require_service_principal(cfg)
        credential = ClientSecretCredentialAsync(
            tenant_id=tenant_id, client_id=client_id, client_secret=secret, authority=authority
        )
    elif cfg.auth_mode == "managed_identity":
        credential = ManagedIdentityCredentialAsync(
            client_id=cfg.user_assigned_identity_client_id
        )
    elif cfg.auth_mode == "azure_cli":
        credential = AzureCliCredentialAsync()
    elif cfg.auth_mode == "environment":
        credential = EnvironmentCredentialAsync(authority=authority)
    else:
        credentials: list[AsyncTokenCredential] = []
        try:
            credentials.append(EnvironmentCredentialAsync(authority=authority))
        except Exception as e:
            logger.debug("EnvironmentCredentialAsync unavailable", error=str(e))
        try:
            credentials.append(ManagedIdentityCredentialAsync())
        except Exception as e:
            logger.debug("ManagedIdentityCredentialAsync unavailable", error=str(e))
        if cfg.enable_cli_fallback:
            credentials.append(AzureCliCredentialAsync())
            credentials.append(AzureDeveloperCliCredentialAsync())
        credential = (
            ChainedTokenCredentialAsync(*credentials)
            if credentials
            else DefaultAzureCredentialAsync(authority=authority)
        )
    return credential


def resource_manager_endpoint(cfg: AzureConfig) -> str:
    return _ARM_ENDPOINTS.get(cfg.cloud, _ARM_ENDPOINTS["public"])


def arm_scopes(cfg: AzureConfig) -> Sequence[str]:
    return [f"{resource_manager_endpoint(cfg)}/.default"]


async def verify_credential_async(
    credential: AsyncTokenCredential, scopes: Sequence[str]
) -> None:
    """Fetch one ARM token so a broken login fails before any resource is touched."""
    try:
        token = await credential.get_token(*scopes)
    except Exception as exc:
        logger.error(
            "verify_credential.failed",
            error_type=type(exc).__name__,
            error_message=describe_error(exc),
        )
        raise AuthenticationException(
            f"Acquiring an ARM token failed: {describe_error(exc)}", cause=exc
        ) from exc
    if not getattr(token, "token", None):
        raise AuthenticationException("Credential returned an empty ARM token")
    logger.debug("verify_credential.ok", expires_on=token.expires_on)
