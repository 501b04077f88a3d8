"""Zone service: one facade over a full zone deployment.

Deploys every zone against a settlement protocol, wires the shared fill
ledger and the aggregator, and turns rejections into typed results that
carry the machine-readable reason back to the fulfiller's client.

When a state store is attached, the fill ledger and allowlists are
written inside the same host transaction as the fulfillment: if the
write fails, the fulfillment is rolled back with it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from tradezones.chain import Chain
from tradezones.config import ZoneSettings
from tradezones.errors import SettlementError, TokenError, ZoneRejection
from tradezones.models.order import OrderComponents
from tradezones.observability import get_logger
from tradezones.persistence.state_store import ZoneStateStore
from tradezones.settlement.lockup_handler import LockupHandlerZone
from tradezones.settlement.lockup_verifier import LockupVerifierZone
from tradezones.settlement.timelock_handler import TimeLockHandlerZone
from tradezones.simulation.settlement import SettlementSimulator
from tradezones.zones.aggregator import ZoneAggregator
from tradezones.zones.allowlist import MerkleAllowlistZone, OffererAllowlistZone
from tradezones.zones.base import Zone
from tradezones.zones.fill_ledger import FillLedger
from tradezones.zones.signature import (
    ServerSignatureZone,
    ServerSignedFillZone,
    SignedAllowlistZone,
)


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


class ZoneService:
    """Unified facade over one zone deployment.

    Usage:
        settings = ZoneSettings.from_config_file(Path("config/zones.json"))
        chain = Chain(chain_id=settings.chain_id)
        service = ZoneService.from_settings(settings, chain)

        result = service.fulfill(order, bob, extra_data=proof)
        if not result.success:
            print(result.errors)   # e.g. ["ORDER_RESTRICTED"]
    """

    def __init__(
        self,
        settings: ZoneSettings,
        chain: Chain,
        ledger: FillLedger,
        zones: dict[str, Zone],
        state_store: Optional[ZoneStateStore] = None,
    ) -> None:
        self.settings = settings
        self.chain = chain
        self.ledger = ledger
        self._zones = zones
        self._state_store = state_store
        self._log = get_logger("zone_service")

    @classmethod
    def from_settings(
        cls,
        settings: ZoneSettings,
        chain: Chain,
        state_store: Optional[ZoneStateStore] = None,
    ) -> ZoneService:
        """Deploy every zone on `chain`. Restores persisted state if a store is given."""
        if settings.chain_id != chain.chain_id:
            raise ValueError(
                f"Settings are for chain {settings.chain_id}, host chain is {chain.chain_id}"
            )
        pinned = settings.zone_address
        protocol = settings.protocol

        if state_store is not None:
            ledger = state_store.load_fill_ledger(chain)
        else:
            ledger = FillLedger(chain)

        aggregator = ZoneAggregator(chain, protocol, address=pinned("aggregator"))
        agg = aggregator.address
        offerer_allowlist = OffererAllowlistZone(
            chain, protocol, aggregator=agg, address=pinned("offerer_allowlist"),
        )
        if state_store is not None:
            offerer_allowlist.load_allowlists(state_store.load_allowlists())

        zones: dict[str, Zone] = {
            "aggregator": aggregator,
            "offerer_allowlist": offerer_allowlist,
            "merkle_allowlist": MerkleAllowlistZone(
                chain, protocol, aggregator=agg, address=pinned("merkle_allowlist"),
            ),
            "server_signature": ServerSignatureZone(
                chain, protocol, settings.server_signer,
                aggregator=agg, address=pinned("server_signature"),
            ),
            "signed_allowlist": SignedAllowlistZone(
                chain, protocol, settings.server_signer, ledger,
                aggregator=agg, address=pinned("signed_allowlist"),
            ),
            "server_signed_fill": ServerSignedFillZone(
                chain, protocol, settings.server_signer, ledger,
                aggregator=agg, address=pinned("server_signed_fill"),
            ),
            "lockup_handler": LockupHandlerZone(
                chain, protocol, settings.vesting_service,
                aggregator=agg, address=pinned("lockup_handler"),
            ),
            "timelock_handler": TimeLockHandlerZone(
                chain, protocol, settings.timelock_service,
                aggregator=agg, address=pinned("timelock_handler"),
            ),
            "lockup_verifier": LockupVerifierZone(
                chain, protocol, settings.lockup_whitelist,
                aggregator=agg, address=pinned("lockup_verifier"),
            ),
        }
        return cls(settings, chain, ledger, zones, state_store)

    # ------------------------------------------------------------------
    # Zone lookup
    # ------------------------------------------------------------------

    def zone(self, key: str) -> Zone:
        """Look up a deployed zone by its settings key."""
        if key not in self._zones:
            raise KeyError(f"Unknown zone: {key}")
        return self._zones[key]

    def zone_addresses(self) -> dict[str, str]:
        return {key: zone.address for key, zone in self._zones.items()}

    @property
    def protocol(self) -> SettlementSimulator:
        contract = self.chain.contract(self.settings.protocol)
        if not isinstance(contract, SettlementSimulator):
            raise TypeError(f"No settlement protocol deployed at {self.settings.protocol}")
        return contract

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def set_allowed_addresses(
        self,
        sender: str,
        components: OrderComponents,
        addresses: Iterable[str],
    ) -> ServiceResult:
        """Register the fulfiller set for an order on the offerer allowlist zone."""
        zone: OffererAllowlistZone = self._zones["offerer_allowlist"]  # type: ignore[assignment]
        try:
            with self.chain.transaction():
                key = zone.set_allowed_addresses(sender, components, addresses)
                self._persist()
        except ZoneRejection as e:
            return ServiceResult(success=False, errors=[e.reason.value], data={"detail": e.detail})
        except OSError as e:
            return ServiceResult(success=False, errors=[f"Persistence failed: {e}"])
        return ServiceResult(success=True, data={"order_hash": "0x" + key.hex()})

    def fulfill(
        self,
        order: OrderComponents,
        fulfiller: str,
        numerator: int = 1,
        denominator: int = 1,
        extra_data: bytes = b"",
    ) -> ServiceResult:
        """Fulfill (part of) an order through the settlement protocol."""
        try:
            with self.chain.transaction():
                key = self.protocol.fulfill_advanced_order(
                    order, fulfiller, numerator, denominator, extra_data,
                )
                self._persist()
        except ZoneRejection as e:
            return ServiceResult(
                success=False,
                errors=[e.reason.value],
                data={"detail": e.detail, "zone": e.zone},
            )
        except (SettlementError, TokenError) as e:
            self._log.warning("fulfillment_failed", error=str(e))
            return ServiceResult(success=False, errors=[str(e)])
        except OSError as e:
            self._log.error("persistence_failed", error=str(e))
            return ServiceResult(success=False, errors=[f"Persistence failed: {e}"])
        return ServiceResult(
            success=True,
            data={
                "order_hash": "0x" + key.hex(),
                "filled_fraction": str(self.protocol.filled_fraction(key)),
            },
        )

    def _persist(self) -> None:
        if self._state_store is None:
            return
        zone: OffererAllowlistZone = self._zones["offerer_allowlist"]  # type: ignore[assignment]
        self._state_store.save_state(self.ledger, zone.allowlists())
