"""Deployment settings for a set of zones on one chain.

Settings come either from a JSON file in the config directory or from
TRADEZONES_* environment variables (optionally read from a .env file).
Both paths fail loudly on a missing key: a zone deployed against the
wrong protocol or signer would accept or reject the wrong fulfillments.

Usage:
    settings = ZoneSettings.from_config_file(Path("config/zones.json"))
    settings = ZoneSettings.from_env(Path(".env"))
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from eth_utils import is_hex_address, to_checksum_address

ENV_PREFIX = "TRADEZONES_"

REQUIRED_KEYS = (
    "version",
    "chain_id",
    "protocol",
    "server_signer",
    "vesting_service",
    "timelock_service",
    "lockup_whitelist",
)

ZONE_KEYS = (
    "aggregator",
    "offerer_allowlist",
    "merkle_allowlist",
    "server_signature",
    "signed_allowlist",
    "server_signed_fill",
    "lockup_handler",
    "timelock_handler",
    "lockup_verifier",
)


def _address(value: Any, key: str) -> str:
    if not isinstance(value, str) or not is_hex_address(value):
        raise ValueError(f"{key} is not an address: {value!r}")
    return to_checksum_address(value)


@dataclass(frozen=True)
class ZoneSettings:
    """Addresses and chain identity every zone deployment is bound to.

    `zone_addresses` optionally pins zones to fixed addresses, keyed by
    the names in ZONE_KEYS. Unpinned zones get fresh addresses.
    """
    version: str
    chain_id: int
    protocol: str
    server_signer: str
    vesting_service: str
    timelock_service: str
    lockup_whitelist: tuple[str, ...]
    zone_addresses: Mapping[str, str] = field(default_factory=dict)

    def zone_address(self, key: str) -> Optional[str]:
        return self.zone_addresses.get(key)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ZoneSettings:
        missing = [k for k in REQUIRED_KEYS if k not in data]
        if missing:
            raise ValueError(f"Zone settings missing keys: {', '.join(missing)}")

        whitelist = data["lockup_whitelist"]
        if not isinstance(whitelist, (list, tuple)):
            raise ValueError("lockup_whitelist must be a list of addresses")

        zones = data.get("zones", {})
        unknown = sorted(set(zones) - set(ZONE_KEYS))
        if unknown:
            raise ValueError(f"Unknown zone keys: {', '.join(unknown)}")

        return cls(
            version=str(data["version"]),
            chain_id=int(data["chain_id"]),
            protocol=_address(data["protocol"], "protocol"),
            server_signer=_address(data["server_signer"], "server_signer"),
            vesting_service=_address(data["vesting_service"], "vesting_service"),
            timelock_service=_address(data["timelock_service"], "timelock_service"),
            lockup_whitelist=tuple(
                _address(a, "lockup_whitelist") for a in whitelist
            ),
            zone_addresses={k: _address(v, f"zones.{k}") for k, v in zones.items()},
        )

    @classmethod
    def from_config_file(cls, path: Path) -> ZoneSettings:
        """Load from a JSON config file."""
        return cls.from_dict(_load_json(path))

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> ZoneSettings:
        """Load from TRADEZONES_* environment variables.

        Values already in the environment win over the .env file.
        TRADEZONES_LOCKUP_WHITELIST is comma-separated.
        """
        if dotenv_path is not None:
            load_dotenv(dotenv_path)

        data: dict[str, Any] = {}
        for key in REQUIRED_KEYS:
            value = os.getenv(ENV_PREFIX + key.upper())
            if value is not None:
                data[key] = value
        if "lockup_whitelist" in data:
            data["lockup_whitelist"] = [
                a.strip() for a in data["lockup_whitelist"].split(",") if a.strip()
            ]

        zones: dict[str, str] = {}
        for key in ZONE_KEYS:
            value = os.getenv(f"{ENV_PREFIX}ZONE_{key.upper()}")
            if value:
                zones[key] = value
        data["zones"] = zones
        return cls.from_dict(data)


def _load_json(path: Path) -> dict[str, Any]:
    """Load a JSON file or raise with clear path."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)
