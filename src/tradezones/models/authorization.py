"""Decoded extra-data payloads for each zone and hook.

Fulfillers supply these as opaque ABI-encoded bytes; `tradezones.codec`
turns them into the records below. Nothing here is trusted until the
owning zone has tied it back to the order's commitment.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ServerToken:
    """Deadline and signature for a token whose other fields come from the call."""
    deadline: int
    signature: bytes


@dataclass(frozen=True)
class AuthParams:
    """Explicit authorization parameters carried by a standalone server token."""
    order_hash: bytes
    fulfiller: str
    deadline: int


@dataclass(frozen=True)
class SignedAuthToken:
    """AuthParams plus the server's signature over them."""
    auth_params: AuthParams
    signature: bytes


@dataclass(frozen=True)
class SignedAllowlistData:
    """Extra data for the offerer-signed allowlist zone."""
    fill_cap: int
    proof: tuple[bytes, ...]
    offerer_signature: bytes
    require_server_signature: bool
    start_timestamp: int
    end_timestamp: int
    server_token: ServerToken


@dataclass(frozen=True)
class ServerFillData:
    """Extra data for the fully server-signed fill zone."""
    min_fill: int
    max_fill: int
    start_timestamp: int
    end_timestamp: int
    server_token: ServerToken


@dataclass(frozen=True)
class ZoneEntry:
    """One sub-zone in an aggregated commitment."""
    zone_address: str
    zone_hash: bytes
    extra_data: bytes
