"""Common contract for every validation zone and settlement hook.

The settlement protocol calls a zone twice per restricted fulfillment:
authorize_order before any asset moves and validate_order afterwards
with the settled amounts. Subclasses implement one or both phases; the
base class enforces who may call, and logs every outcome once.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from eth_utils import to_checksum_address

from tradezones.chain import Chain, Contract
from tradezones.crypto.typed_data import Eip712Domain
from tradezones.errors import RejectionReason, ZoneRejection
from tradezones.models.order import ZERO_ADDRESS, ZoneParameters
from tradezones.observability import get_logger


def require_nonzero(address: str, what: str) -> str:
    """Checksum an address, refusing the zero address."""
    if not address or to_checksum_address(address) == ZERO_ADDRESS:
        raise ZoneRejection(RejectionReason.ZERO_ADDRESS, f"{what} must be set")
    return to_checksum_address(address)


class Zone(Contract):
    """A deployed zone trusted by one settlement protocol.

    The protocol is always a trusted caller. When an aggregator address
    is configured, calls forwarded by the aggregator are trusted too.
    """

    #: EIP-712 domain name and log component for this zone.
    name = "Zone"
    version = "1.0"

    def __init__(
        self,
        chain: Chain,
        protocol: str,
        aggregator: Optional[str] = None,
        address: Optional[str] = None,
    ) -> None:
        super().__init__(chain, address)
        self.protocol = require_nonzero(protocol, "protocol")
        self.aggregator = to_checksum_address(aggregator) if aggregator else None
        self._log = get_logger(self.name).bind(zone=self.address)

    @property
    def domain(self) -> Eip712Domain:
        return Eip712Domain(
            name=self.name,
            version=self.version,
            chain_id=self.chain.chain_id,
            verifying_contract=self.address,
        )

    def is_trusted_caller(self, caller: str) -> bool:
        caller = to_checksum_address(caller)
        return caller == self.protocol or (
            self.aggregator is not None and caller == self.aggregator
        )

    def _require_trusted_caller(self, caller: str) -> None:
        if not self.is_trusted_caller(caller):
            raise ZoneRejection(RejectionReason.CALLER_NOT_PROTOCOL, f"caller {caller}")

    @contextmanager
    def _logged(self, phase: str, params: ZoneParameters) -> Iterator[None]:
        try:
            yield
        except ZoneRejection as rejection:
            if rejection.zone is None:
                rejection.zone = self.name
                self._log.warning(
                    "fulfillment_rejected",
                    phase=phase,
                    reason=rejection.reason.value,
                    detail=rejection.detail,
                    order_hash="0x" + params.order_hash.hex(),
                    fulfiller=params.fulfiller,
                )
            raise
        self._log.info(
            "fulfillment_authorized",
            phase=phase,
            order_hash="0x" + params.order_hash.hex(),
            fulfiller=params.fulfiller,
        )

    def authorize_order(self, caller: str, params: ZoneParameters) -> None:
        """Pre-transfer callback. Returns normally to accept.

        Raises:
            ZoneRejection: with the machine-readable reason on refusal.
        """
        with self._logged("authorize", params):
            self._require_trusted_caller(caller)
            self._authorize(params)

    def validate_order(self, caller: str, params: ZoneParameters) -> None:
        """Post-transfer callback, with settled amounts. Returns normally to accept.

        Raises:
            ZoneRejection: with the machine-readable reason on refusal.
        """
        with self._logged("validate", params):
            self._require_trusted_caller(caller)
            self._validate(params)

    def _authorize(self, params: ZoneParameters) -> None:
        return None

    def _validate(self, params: ZoneParameters) -> None:
        return None


def fill_amount(params: ZoneParameters) -> int:
    """The amount a fill-capped zone charges against the ledger.

    This is the settled amount of the first offer item, which the
    protocol has already scaled by the requested fill fraction.
    """
    if not params.offer:
        raise ZoneRejection(RejectionReason.NO_OFFER, "fill-capped orders need an offer item")
    return params.offer[0].amount


def check_window(start_timestamp: int, end_timestamp: int, now: int) -> None:
    """Per-fulfiller time window, inclusive at both ends."""
    if now < start_timestamp:
        raise ZoneRejection(
            RejectionReason.BEFORE_START_TIME,
            f"window opens at {start_timestamp}, now {now}",
        )
    if now > end_timestamp:
        raise ZoneRejection(
            RejectionReason.END_TIME_EXCEEDED,
            f"window closed at {end_timestamp}, now {now}",
        )
