# src/wg_rotator/settings.py
# Configuration lue dans l'environnement (préfixe WG_ROTATOR_) ou un fichier .env.
# L'ancienne variable CONFIGS_DIR reste acceptée pour le répertoire des configs.
from __future__ import annotations
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration de wg-rotator."""

    model_config = SettingsConfigDict(
        env_prefix="WG_ROTATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Pool d'endpoints
    config_dir: Path = Field(
        default=Path("configs"),
        validation_alias=AliasChoices("WG_ROTATOR_CONFIG_DIR", "CONFIGS_DIR", "config_dir"),
        description="Directory holding one <name>.conf file per endpoint",
    )

    # Control plane (wg / wg-quick)
    interface: str = Field(default="wgrot0", description="WireGuard interface managed by wg-quick")
    runtime_dir: Path = Field(
        default=Path("run"),
        description="Where the active endpoint is rendered before `wg-quick up`",
    )
    use_sudo: bool = Field(default=False, description="Prefix privileged commands with `sudo -n`")
    command_timeout: float = Field(default=30.0, gt=0, description="Seconds allowed per command")

    # Logs
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    @field_validator("interface")
    @classmethod
    def _check_interface(cls, v: str) -> str:
        # wg-quick dérive le nom d'interface du nom de fichier: 15 caractères max
        if not v or len(v) > 15 or not all(c.isalnum() or c in "_=+.-" for c in v):
            raise ValueError(f"Invalid WireGuard interface name: {v!r}")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
