from __future__ import annotations

import ipaddress
import json
import os
from dataclasses import dataclass
from typing import Any, Mapping

from .errors import ConfigError

DEFAULT_CONFIG_FILE = os.path.join("config", "config.json")
DEFAULT_HCLOUD_ENDPOINT = "https://api.hetzner.cloud/v1"


def _env_bool(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _file_int(raw: Any, default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _file_bool(raw: Any, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


def _valid_floating_ip(value: str) -> bool:
    """A bare address, or an IPv6 /64 allocation as the cloud API reports it."""
    address, _, prefix = value.partition("/")
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    if not prefix:
        return True
    return ip.version == 6 and prefix == "64"


@dataclass(frozen=True)
class Settings:
    # Core
    hcloud_token: str
    floating_ip: str
    node_name: str
    poll_interval_s: int = 30
    request_timeout_s: int = 10
    hcloud_endpoint: str = DEFAULT_HCLOUD_ENDPOINT
    kubeconfig: str | None = None

    # Failure posture. Off by default: every error ends the loop.
    retry_transport: bool = False
    retry_initial_backoff_s: int = 1
    retry_max_backoff_s: int = 60
    retry_max_attempts: int = 5

    # Report the decision without issuing the assign call.
    dry_run: bool = False

    # Status API (optional)
    status_enabled: bool = False
    status_host: str = "0.0.0.0"
    status_port: int = 8080

    log_level: str = "INFO"


def read_config_file(path: str, required: bool = False) -> dict[str, Any]:
    """Read the JSON config file; keys are lower-cased.

    The file only ever needs ``token`` and ``address``; other keys are
    optional. A missing file is fine unless ``required`` is set.
    """
    if not os.path.exists(path):
        if required:
            raise ConfigError(f"could not open config file: {path}")
        return {}
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as e:
        raise ConfigError(f"could not decode config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must contain a JSON object")
    return {str(k).lower(): v for k, v in data.items()}


def load_settings(config_path: str | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from env vars, then the config file, then defaults."""
    env = os.environ if environ is None else environ

    explicit = config_path or env.get("FIPC_CONFIG_FILE")
    file_cfg = read_config_file(explicit or DEFAULT_CONFIG_FILE, required=bool(explicit))

    def pick(env_name: str, file_key: str, default: str | None = None) -> str | None:
        value = env.get(env_name)
        if value:
            return value.strip()
        value = file_cfg.get(file_key)
        if value not in (None, ""):
            return str(value).strip()
        return default

    token = pick("HCLOUD_TOKEN", "token")
    floating_ip = pick("FIPC_FLOATING_IP", "address")
    node_name = pick("NODE_NAME", "node_name")

    missing = [
        name
        for name, value in (
            ("HCLOUD_TOKEN / token", token),
            ("FIPC_FLOATING_IP / address", floating_ip),
            ("NODE_NAME / node_name", node_name),
        )
        if not value
    ]
    if missing:
        raise ConfigError(f"missing required configuration: {', '.join(missing)}")

    if not _valid_floating_ip(floating_ip):
        raise ConfigError(f"floating IP {floating_ip!r} is not a valid IP address")

    poll_interval_s = _env_int(env, "FIPC_POLL_INTERVAL_S", _file_int(file_cfg.get("poll_interval_s"), 30))
    if poll_interval_s <= 0:
        raise ConfigError(f"poll interval must be positive, got {poll_interval_s}")
    request_timeout_s = _env_int(env, "FIPC_REQUEST_TIMEOUT_S", _file_int(file_cfg.get("request_timeout_s"), 10))

    return Settings(
        hcloud_token=token,
        floating_ip=floating_ip,
        node_name=node_name,
        poll_interval_s=poll_interval_s,
        request_timeout_s=max(1, request_timeout_s),
        hcloud_endpoint=(pick("FIPC_HCLOUD_ENDPOINT", "endpoint", DEFAULT_HCLOUD_ENDPOINT) or "").rstrip("/"),
        kubeconfig=pick("FIPC_KUBECONFIG", "kubeconfig"),
        retry_transport=_env_bool(env, "FIPC_RETRY_TRANSPORT", _file_bool(file_cfg.get("retry_transport"), False)),
        retry_initial_backoff_s=max(1, _env_int(env, "FIPC_RETRY_INITIAL_BACKOFF_S", 1)),
        retry_max_backoff_s=max(1, _env_int(env, "FIPC_RETRY_MAX_BACKOFF_S", 60)),
        retry_max_attempts=max(1, _env_int(env, "FIPC_RETRY_MAX_ATTEMPTS", 5)),
        dry_run=_env_bool(env, "FIPC_DRY_RUN", False),
        status_enabled=_env_bool(env, "FIPC_STATUS_ENABLED", False),
        status_host=env.get("FIPC_STATUS_HOST", "0.0.0.0"),
        status_port=_env_int(env, "FIPC_STATUS_PORT", 8080),
        log_level=env.get("FIPC_LOG_LEVEL", "INFO").upper(),
    )
