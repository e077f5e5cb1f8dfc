"""Configuration models for zpod_inventory using Pydantic v2."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, SecretStr, model_validator


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "false").lower() == "true"


class DebugSettings(BaseModel):
    """Verbose request/response dumps, one toggle per transport."""

    vsphere: bool = Field(False, description="Dump SOAP envelopes (DEBUG_API_VSPHERE)")
    nsx: bool = Field(False, description="Dump REST calls (DEBUG_API_NSX)")

    @classmethod
    def from_env(cls) -> "DebugSettings":
        return cls(
            vsphere=_env_flag("DEBUG_API_VSPHERE"),
            nsx=_env_flag("DEBUG_API_NSX"),
        )


class EndpointConfig(BaseModel):
    """Credentials for one management endpoint (vCenter or NSX Manager)."""

    hostname: str = Field(..., min_length=1, description="Endpoint hostname or IP")
    username: str = Field(..., min_length=1, description="Login username")
    password: Optional[SecretStr] = Field(None, description="Login password (prefer password_env)")
    password_env: Optional[str] = Field(None, description="Environment variable containing the password")

    @model_validator(mode="after")
    def resolve_password(self) -> "EndpointConfig":
        if self.password is None and self.password_env:
            env_val = os.environ.get(self.password_env)
            if env_val:
                self.password = SecretStr(env_val)
        if self.password is None or not self.password.get_secret_value():
            raise ValueError("Either 'password' or 'password_env' (with matching env var) must be provided")
        return self

    @property
    def secret(self) -> str:
        return self.password.get_secret_value() if self.password else ""


class AppConfig(BaseModel):
    """Root application configuration."""

    vsphere: Optional[EndpointConfig] = None
    nsx: Optional[EndpointConfig] = None

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AppConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def from_env(cls, section: Optional[str] = None) -> "AppConfig":
        """Build config from environment variables.

        An endpoint is only configured when its host variable is set. With
        ``section`` ("vsphere" or "nsx"), the other endpoint is not read, so
        its incomplete variables cannot fail validation.
        """
        base: dict = {}
        for key, prefix in (("vsphere", "VSPHERE"), ("nsx", "NSX")):
            if section and key != section:
                continue
            host = os.environ.get(f"{prefix}_HOST", "")
            if host:
                base[key] = {
                    "hostname": host,
                    "username": os.environ.get(f"{prefix}_USERNAME", ""),
                    "password_env": f"{prefix}_PASSWORD",
                }
        return cls(**base)
