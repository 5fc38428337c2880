"""
Configuration for vSphere Status Sync.

Reads from environment variables once at startup.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings loaded from environment."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    # vCenter credentials (shared with govc naming)
    govmomi_url: str = Field("", validation_alias="GOVMOMI_URL")
    govmomi_username: str = Field("", validation_alias="GOVMOMI_USERNAME")
    govmomi_password: str = Field("", validation_alias="GOVMOMI_PASSWORD")
    govmomi_insecure: bool = Field(True, validation_alias="GOVMOMI_INSECURE")
    connect_timeout_seconds: int = Field(30, validation_alias="VSPHERE_SYNC_CONNECT_TIMEOUT")

    # Reconciliation
    requeue_after_seconds: int = Field(60, validation_alias="VSPHERE_SYNC_REQUEUE_SECONDS")
    error_backoff_seconds: int = Field(15, validation_alias="VSPHERE_SYNC_ERROR_BACKOFF")
    page_size: int = Field(1000, validation_alias="VSPHERE_SYNC_PAGE_SIZE")

    # Custom resources
    crd_group: str = Field("topology.vkubeviewer.com", validation_alias="VSPHERE_SYNC_CRD_GROUP")
    crd_version: str = Field("v1", validation_alias="VSPHERE_SYNC_CRD_VERSION")
    namespace: Optional[str] = Field(None, validation_alias="VSPHERE_SYNC_NAMESPACE")

    # Runtime
    liveness_endpoint: Optional[str] = Field(None, validation_alias="VSPHERE_SYNC_LIVENESS")
    session_cache_dir: str = Field("~/.govmomi/sessions", validation_alias="VSPHERE_SYNC_SESSION_CACHE_DIR")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")


def load_settings() -> Settings:
    """Read settings from the process environment."""
    return Settings()
