"""State store: JSON persistence for zone state that outlives a process.

The only durable zone state is the fill ledger and the offerer-registered
allowlists. Everything else is either derived from order data or held by
external collaborators.

Writes are atomic: the new state goes to a temporary file that then
replaces the store file, and the in-memory copy only changes once that
replace has succeeded. A failed write leaves both exactly as they were.

This is a simple file-based store suitable for single-node deployment.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from tradezones.chain import Chain
from tradezones.zones.fill_ledger import FillLedger

Allowlists = dict[bytes, frozenset[str]]


def _hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def _unhex(value: str) -> bytes:
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def _ledger_section(ledger: FillLedger) -> list[dict[str, str]]:
    # Amounts as decimal strings; JSON numbers lose uint256 precision
    return [
        {
            "order_hash": _hex(order_hash),
            "fulfiller": fulfiller,
            "filled": str(amount),
        }
        for order_hash, fulfiller, amount in ledger.entries()
    ]


def _allowlist_section(allowlists: Allowlists) -> dict[str, list[str]]:
    return {
        _hex(order_hash): sorted(addresses)
        for order_hash, addresses in allowlists.items()
    }


class ZoneStateStore:
    """JSON file-based zone state persistence.

    Usage:
        store = ZoneStateStore(Path("data/zone_state.json"))
        store.save_state(ledger, offerer_zone.allowlists())

        # On recovery:
        ledger = store.load_fill_ledger(chain)
        offerer_zone.load_allowlists(store.load_allowlists())
    """

    def __init__(self, storage_path: Path) -> None:
        self._path = storage_path
        self._state: dict[str, Any] = {}
        if storage_path.exists():
            self._load()

    def _load(self) -> None:
        with self._path.open("r", encoding="utf-8") as f:
            self._state = json.load(f)

    def _save(self, state: dict[str, Any]) -> None:
        """Write `state` atomically, then adopt it as the current state."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(state, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
        self._state = state

    def save_state(self, ledger: FillLedger, allowlists: Allowlists) -> None:
        """Persist the fill ledger and the allowlists in a single write."""
        self._save({
            **self._state,
            "fill_ledger": _ledger_section(ledger),
            "allowlists": _allowlist_section(allowlists),
        })

    # ------------------------------------------------------------------
    # Fill ledger
    # ------------------------------------------------------------------

    def save_fill_ledger(self, ledger: FillLedger) -> None:
        self._save({**self._state, "fill_ledger": _ledger_section(ledger)})

    def load_fill_ledger(self, chain: Optional[Chain] = None) -> FillLedger:
        ledger = FillLedger(chain)
        ledger.load([
            (_unhex(entry["order_hash"]), entry["fulfiller"], int(entry["filled"]))
            for entry in self._state.get("fill_ledger", [])
        ])
        return ledger

    # ------------------------------------------------------------------
    # Offerer allowlists
    # ------------------------------------------------------------------

    def save_allowlists(self, allowlists: Allowlists) -> None:
        self._save({**self._state, "allowlists": _allowlist_section(allowlists)})

    def load_allowlists(self) -> Allowlists:
        return {
            _unhex(order_hash): frozenset(addresses)
            for order_hash, addresses in self._state.get("allowlists", {}).items()
        }
