from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ControlSettings(BaseSettings):
    """
    Framework-level settings (the 'jbossctl' section in jbossctl.yaml).
    """
    model_config = SettingsConfigDict(env_prefix='JBOSSCTL_', extra='ignore')

    log_level: str = "INFO"
    # Bound for the "is it already running" checks, distinct from each target's own timeout.
    precheck_timeout_seconds: int = Field(default=3, ge=0)
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    shutdown_url_scheme: str = "jnp"
    # Append start command stderr here instead of forwarding it to the console.
    start_stderr_log: Optional[Path] = None


class ManagementSettings(BaseModel):
    """
    Management endpoint adapter settings (the 'management' section in jbossctl.yaml).
    """
    model_config = ConfigDict(extra='ignore')

    scheme: Literal["http", "https"] = "http"
    path: str = "/jolokia"
    request_timeout_seconds: float = Field(default=5.0, gt=0)
    username: Optional[str] = None
    password: Optional[str] = None
    verify_tls: bool = True


class ControlConfig(BaseModel):
    """Settings aggregated from one configuration file."""
    model_config = ConfigDict(extra='forbid')

    settings: ControlSettings = Field(default_factory=ControlSettings)
    management: ManagementSettings = Field(default_factory=ManagementSettings)

    @classmethod
    def from_dict(cls, config_dict: Optional[Dict[str, Any]] = None) -> "ControlConfig":
        config_dict = config_dict or {}
        return cls(
            settings=ControlSettings(**(config_dict.get('jbossctl') or {})),
            management=ManagementSettings(**(config_dict.get('management') or {})),
        )
