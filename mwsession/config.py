"""
Session configuration.

SessionConfig is immutable. Build it from a dict (from_dict), a YAML file
(load_config), or overlay a JSON object from the MWSESSION_CFG environment
variable (merged_config).
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .wire.framer import DEFAULT_MAX_FRAME_SIZE


ENV_VAR = "MWSESSION_CFG"
DEFAULT_PORT = 1533


@dataclass(frozen=True)
class SessionConfig:
    client_major: int = 0x001E
    client_minor: int = 0x001D
    login_type: int = 0x1003        # client type id reported in handshake/login
    local_host: str = ""
    port: int = DEFAULT_PORT
    read_size: int = 2048           # bytes per transport read
    max_frame_size: int = DEFAULT_MAX_FRAME_SIZE
    encrypt_password: bool = True
    connect_timeout: Optional[float] = None

    def __post_init__(self):
        if not 0 <= self.client_major <= 0xFFFF or not 0 <= self.client_minor <= 0xFFFF:
            raise ValueError("client version must fit in 16 bits")
        if not 0 <= self.login_type <= 0xFFFF:
            raise ValueError("login_type must fit in 16 bits")
        if not 0 < self.port <= 0xFFFF:
            raise ValueError(f"invalid port {self.port}")
        if self.read_size <= 0:
            raise ValueError("read_size must be positive")
        if self.max_frame_size < 8:
            raise ValueError("max_frame_size must hold at least a header")

    @classmethod
    def from_dict(cls, d: Dict[str, Any] | None) -> "SessionConfig":
        """Coerce a loosely typed mapping; unknown keys are ignored."""
        d = d or {}
        timeout = d.get("connect_timeout")
        return cls(
            client_major=_as_int(d.get("client_major", cls.client_major)),
            client_minor=_as_int(d.get("client_minor", cls.client_minor)),
            login_type=_as_int(d.get("login_type", cls.login_type)),
            local_host=str(d.get("local_host", cls.local_host)),
            port=int(d.get("port", cls.port)),
            read_size=int(d.get("read_size", cls.read_size)),
            max_frame_size=int(d.get("max_frame_size", cls.max_frame_size)),
            encrypt_password=_as_bool(d.get("encrypt_password", cls.encrypt_password)),
            connect_timeout=float(timeout) if timeout is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _as_int(value: Any) -> int:
    # YAML users write versions as hex strings ("0x001e")
    if isinstance(value, str):
        return int(value, 0)
    return int(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def load_config(path: str | Path) -> SessionConfig:
    """Load a SessionConfig from a YAML mapping."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")
    return SessionConfig.from_dict(data)


def merged_config(base: Dict[str, Any] | None = None) -> SessionConfig:
    """Merge base cfg with optional JSON in MWSESSION_CFG."""
    cfg: dict = (base or {}).copy()
    env_cfg = os.environ.get(ENV_VAR)
    if env_cfg:
        try:
            parsed = json.loads(env_cfg)
        except json.JSONDecodeError as e:
            raise ValueError(f"{ENV_VAR} is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise ValueError(f"{ENV_VAR} must hold a JSON object")
        cfg.update(parsed)
    return SessionConfig.from_dict(cfg)
