"""Configuration management for vcsstatus.

Loads user settings from ~/.config/vcsstatus/config.cfg, falling back to
~/.config/vcsstatus/.env. Environment variables override both.
"""

import configparser
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

CONFIG_DIR = Path.home() / ".config" / "vcsstatus"
CONFIG_PATH = CONFIG_DIR / "config.cfg"
ENV_PATH = CONFIG_DIR / ".env"


def get_default_socket_path() -> Path:
    """Per-user default socket location."""
    return Path.home() / ".vcsstatus-sock"


@dataclass
class DaemonSettings:
    socket_path: Path
    overwrite_socket: bool = False
    request_timeout: float = 5.0
    inspect_timeout: float = 10.0
    drain_timeout: float = 2.0
    client_timeout: float = 15.0


def load_raw_config(path: Path = CONFIG_PATH, env_path: Path = ENV_PATH) -> Dict[str, str]:
    """
    Load configuration values from the standard config path.
    Values are returned with lowercase keys for convenience.
    """
    data: Dict[str, str] = {}

    if path.exists():
        cfg = configparser.ConfigParser()
        cfg.read(path)
        if "DEFAULT" in cfg:
            data.update({k.lower(): v for k, v in cfg["DEFAULT"].items()})
        return data

    if env_path.exists():
        data.update({k.lower(): v for k, v in dotenv_values(env_path).items() if v is not None})

    return data


def _get_bool(raw: Dict[str, str], key: str, default: bool = False) -> bool:
    value = raw.get(key, "")
    if isinstance(value, bool):
        return value
    if value is None or str(value).strip() == "":
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_float(raw: Dict[str, str], key: str, env_name: str, default: float) -> float:
    env_value = os.environ.get(env_name)
    if env_value is not None and str(env_value).strip() != "":
        return float(env_value)
    value = raw.get(key)
    if value is None or str(value).strip() == "":
        return default
    return float(value)


def get_daemon_settings(raw: Optional[Dict[str, str]] = None) -> DaemonSettings:
    """
    Build DaemonSettings from raw configuration values.
    Raises ValueError if a timeout is not a number.
    """
    raw = load_raw_config() if raw is None else raw

    socket_path = os.environ.get("VCSSTATUS_SOCKET_PATH") or raw.get("socket_path", "")
    socket_path = socket_path.strip()

    return DaemonSettings(
        socket_path=Path(socket_path).expanduser() if socket_path else get_default_socket_path(),
        overwrite_socket=_get_bool(raw, "overwrite_socket", False),
        request_timeout=_get_float(raw, "request_timeout", "VCSSTATUS_REQUEST_TIMEOUT_S", 5.0),
        inspect_timeout=_get_float(raw, "inspect_timeout", "VCSSTATUS_INSPECT_TIMEOUT_S", 10.0),
        drain_timeout=_get_float(raw, "drain_timeout", "VCSSTATUS_DRAIN_TIMEOUT_S", 2.0),
        client_timeout=_get_float(raw, "client_timeout", "VCSSTATUS_CLIENT_TIMEOUT_S", 15.0),
    )
