"""Tests for zone state persistence."""

import json

import pytest

from tradezones.persistence.state_store import ZoneStateStore
from tradezones.zones.fill_ledger import FillLedger

ORDER_A = b"\x0a" * 32
ORDER_B = b"\x0b" * 32
BOB = "0x" + "b0" * 20
CHARLIE = "0x" + "c0" * 20


class TestZoneStateStore:
    def test_fill_ledger_round_trip(self, tmp_path, chain) -> None:
        path = tmp_path / "state.json"
        ledger = FillLedger()
        ledger.record_fill(ORDER_A, BOB, 400, min_fill=0, max_fill=1_000)
        ledger.record_fill(ORDER_B, CHARLIE, 2**200, min_fill=0, max_fill=2**256 - 1)
        ZoneStateStore(path).save_fill_ledger(ledger)

        restored = ZoneStateStore(path).load_fill_ledger(chain)

        assert restored.filled(ORDER_A, BOB) == 400
        assert restored.filled(ORDER_B, CHARLIE) == 2**200
        assert restored.filled(ORDER_A, CHARLIE) == 0

    def test_amounts_stored_as_strings(self, tmp_path) -> None:
        path = tmp_path / "state.json"
        ledger = FillLedger()
        ledger.record_fill(ORDER_A, BOB, 400, min_fill=0, max_fill=1_000)
        ZoneStateStore(path).save_fill_ledger(ledger)

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["fill_ledger"][0]["filled"] == "400"
        assert raw["fill_ledger"][0]["order_hash"] == "0x" + ORDER_A.hex()

    def test_allowlists_round_trip(self, tmp_path) -> None:
        path = tmp_path / "nested" / "state.json"
        store = ZoneStateStore(path)
        store.save_allowlists({ORDER_A: frozenset({BOB, CHARLIE}), ORDER_B: frozenset()})

        restored = ZoneStateStore(path).load_allowlists()

        assert restored == {ORDER_A: frozenset({BOB, CHARLIE}), ORDER_B: frozenset()}

    def test_sections_saved_independently(self, tmp_path) -> None:
        path = tmp_path / "state.json"
        store = ZoneStateStore(path)
        store.save_allowlists({ORDER_A: frozenset({BOB})})
        store.save_fill_ledger(FillLedger())

        reopened = ZoneStateStore(path)
        assert reopened.load_allowlists() == {ORDER_A: frozenset({BOB})}
        assert list(reopened.load_fill_ledger().entries()) == []

    def test_fresh_store_is_empty(self, tmp_path) -> None:
        store = ZoneStateStore(tmp_path / "absent.json")
        assert store.load_allowlists() == {}
        assert list(store.load_fill_ledger().entries()) == []

    def test_save_state_writes_both_sections(self, tmp_path) -> None:
        path = tmp_path / "state.json"
        ledger = FillLedger()
        ledger.record_fill(ORDER_A, BOB, 400, min_fill=0, max_fill=1_000)
        ZoneStateStore(path).save_state(ledger, {ORDER_B: frozenset({CHARLIE})})

        reopened = ZoneStateStore(path)
        assert reopened.load_fill_ledger().filled(ORDER_A, BOB) == 400
        assert reopened.load_allowlists() == {ORDER_B: frozenset({CHARLIE})}

    def test_failed_write_changes_nothing(self, tmp_path, monkeypatch) -> None:
        path = tmp_path / "state.json"
        store = ZoneStateStore(path)
        ledger = FillLedger()
        ledger.record_fill(ORDER_A, BOB, 400, min_fill=0, max_fill=1_000)
        store.save_state(ledger, {ORDER_A: frozenset({BOB})})

        def _replace_fails(src, dst) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("tradezones.persistence.state_store.os.replace", _replace_fails)
        ledger.record_fill(ORDER_A, BOB, 600, min_fill=0, max_fill=1_000)
        with pytest.raises(OSError):
            store.save_state(ledger, {})

        assert store.load_fill_ledger().filled(ORDER_A, BOB) == 400
        assert store.load_allowlists() == {ORDER_A: frozenset({BOB})}
        reopened = ZoneStateStore(path)
        assert reopened.load_fill_ledger().filled(ORDER_A, BOB) == 400
        assert reopened.load_allowlists() == {ORDER_A: frozenset({BOB})}
        assert list(tmp_path.iterdir()) == [path]
