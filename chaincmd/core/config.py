# -*- coding: utf-8 -*-
"""Config loader: conf/settings.ini, overridden by environment, then by flags."""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from chaincmd.core.errors import ConfigError

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "conf" / "settings.ini"

DEFAULT_PLATFORM = "eth"
DEFAULT_API_PREFIX = "/api"
ENV_PREFIX = "CHAINCMD_"


@dataclass(frozen=True)
class AppConfig:
    platform: str = DEFAULT_PLATFORM
    chains: Mapping[str, str] = field(default_factory=dict)
    registry_path: Path = Path("chaincmd.json")
    host: str = "127.0.0.1"
    port: int = 3000
    api_prefix: str = DEFAULT_API_PREFIX
    root_path: str = ""
    cors_allow_origins: Tuple[str, ...] = ()

    def rpc_url(self, platform: str) -> Optional[str]:
        return self.chains.get(str(platform).strip().lower())


def _expand(val: Optional[str]) -> Optional[str]:
    if not val:
        return None
    return os.path.expanduser(val.strip())


def _cfg_get(cfg: configparser.ConfigParser, section: str, key: str) -> Optional[str]:
    try:
        val = cfg.get(section, key, fallback="").strip()
    except configparser.Error:
        val = ""
    return val or None


def load_ini(path: Path, *, required: bool = False) -> configparser.ConfigParser:
    cfg = configparser.ConfigParser()
    if not path.exists():
        if required:
            raise ConfigError(f"Missing config: {path}")
        return cfg
    cfg.read(path, encoding="utf-8")
    return cfg


def _chains(cfg: configparser.ConfigParser, environ: Mapping[str, str]) -> Dict[str, str]:
    chains: Dict[str, str] = {}
    if cfg.has_section("CHAINS"):
        for name, url in cfg.items("CHAINS"):
            if url.strip():
                chains[name.strip().lower()] = url.strip()
    rpc_prefix = f"{ENV_PREFIX}RPC_"
    for key, url in environ.items():
        if key.startswith(rpc_prefix) and url.strip():
            chains[key[len(rpc_prefix):].lower()] = url.strip()
    return chains


def resolve_config(
    *,
    config_path: Optional[Path] = None,
    platform: Optional[str] = None,
    registry: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    env = os.environ if environ is None else environ

    explicit = config_path or env.get(f"{ENV_PREFIX}CONFIG")
    path = Path(_expand(str(explicit))) if explicit else DEFAULT_CONFIG_PATH
    cfg = load_ini(path, required=bool(explicit))

    platform = platform or env.get(f"{ENV_PREFIX}PLATFORM") or _cfg_get(cfg, "DEFAULTS", "PLATFORM") or DEFAULT_PLATFORM
    registry = registry or env.get(f"{ENV_PREFIX}REGISTRY") or _cfg_get(cfg, "DEFAULTS", "REGISTRY") or "chaincmd.json"
    host = host or _cfg_get(cfg, "SERVER", "HOST") or "127.0.0.1"
    raw_port = port if port is not None else _cfg_get(cfg, "SERVER", "PORT")
    try:
        port_num = int(raw_port) if raw_port is not None else 3000
    except ValueError:
        raise ConfigError(f"SERVER.PORT is not a number: {raw_port!r}")

    origins = [x.strip() for x in (_cfg_get(cfg, "SERVER", "CORS_ALLOW_ORIGINS") or "").split(",") if x.strip()]

    registry_path = Path(_expand(registry)).resolve()

    return AppConfig(
        platform=str(platform).strip().lower(),
        chains=_chains(cfg, env),
        registry_path=registry_path,
        host=str(host),
        port=port_num,
        api_prefix=_cfg_get(cfg, "SERVER", "API_PREFIX") or DEFAULT_API_PREFIX,
        root_path=_cfg_get(cfg, "SERVER", "ROOT_PATH") or "",
        cors_allow_origins=tuple(origins),
    )
