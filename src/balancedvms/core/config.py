from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    Field,
    SecretStr,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from balancedvms import __version__
from balancedvms.core.exceptions import ConfigurationError

# ARM accepts either case; ids are kept lowercase
Guid = Annotated[
    str,
    StringConstraints(strip_whitespace=True, pattern="^[a-fA-F0-9-]{36}$", to_lower=True),
]


class AzureConfig(BaseModel):
    subscription_id: Guid | None = None
    tenant_id: Guid | None = None
    client_id: str | None = None
    client_secret: SecretStr | None = None
    auth_mode: Literal[
        "default",
        "service_principal",
        "managed_identity",
        "azure_cli",
        "environment",
    ] = "default"
    user_assigned_identity_client_id: str | None = None
    cloud: Literal["public", "usgov", "china"] = "public"
    authority_host: str | None = None
    enable_cli_fallback: bool = True
    user_agent: str = f"balancedvms/{__version__}"

    @model_validator(mode="after")
    def _default_authority(self) -> AzureConfig:
        if self.cloud == "public" and not self.authority_host:
            self.authority_host = "https://login.microsoftonline.com"
        return self


class ImageConfig(BaseModel):
    publisher: str = "Canonical"
    offer: str = "UbuntuServer"
    sku: str = "16.04.0-LTS"
    version: str = "latest"


class SampleConfig(BaseModel):
    resource_group: str = "your-azure-sample-group"
    location: str = "westus"
    vnet_name: str = "vNet"
    vnet_address_prefix: str = "10.0.0.0/16"
    subnet_name: str = "subnet"
    subnet_address_prefix: str = "10.0.0.0/24"
    public_ip_name: str = "pip"
    dns_label: str = "domain-name"
    frontend_ip_config_name: str = "fip"
    backend_pool_name: str = "backEndPool"
    probe_name: str = "probe"
    load_balancer_name: str = "lb"
    availability_set_name: str = "availSet"
    storage_account_name: str = "golangrocksonazure"
    vhd_container: str = "golangcontainer"
    vm_names: tuple[str, str] = ("Web1", "Web2")
    nat_frontend_ports: tuple[int, int] = (21, 23)
    vm_size: str = "Standard_DS1"
    image: ImageConfig = Field(default_factory=ImageConfig)
    admin_username: str = "notAdmin"
    admin_password: SecretStr | None = None
    show_admin_password: bool = False
    skip_teardown_prompt: bool = False

    @field_validator("location", mode="before")
    @classmethod
    def _normalize_location(cls, v: object) -> str:
        return str(v).lower().strip() if v else "westus"


class ObservabilityConfig(BaseModel):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation_size_mb: int = Field(default=10, ge=1)
    log_retention_days: int = Field(default=7, ge=1)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "balancedvms"
    app_version: str = __version__

    azure: AzureConfig = Field(default_factory=AzureConfig)
    sample: SampleConfig = Field(default_factory=SampleConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    azure_subscription_id: Guid | None = None
    azure_tenant_id: Guid | None = None
    azure_client_id: str | None = None
    azure_client_secret: SecretStr | None = None

    @model_validator(mode="after")
    def apply_legacy_env(self) -> Settings:
        if self.azure_subscription_id and not self.azure.subscription_id:
            self.azure.subscription_id = self.azure_subscription_id
        if self.azure_tenant_id and not self.azure.tenant_id:
            self.azure.tenant_id = self.azure_tenant_id
        if self.azure_client_id and not self.azure.client_id:
            self.azure.client_id = self.azure_client_id
        if self.azure_client_secret and not self.azure.client_secret:
            self.azure.client_secret = self.azure_client_secret
        return self

    def require_subscription_id(self) -> str:
        sid = self.azure.subscription_id
        if not sid:
            raise ConfigurationError(
                "AZURE_SUBSCRIPTION_ID", "environment variable is required but not set"
            )
        return sid


@lru_cache
def get_settings() -> Settings:
    return Settings()
