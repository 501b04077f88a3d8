"""Rejection taxonomy for zone validation and settlement hooks.

Every failure is immediate and aborts the enclosing host transaction.
There is no local recovery or retry: the whole trade is undone and the
machine-readable reason is surfaced to the fulfiller's client.

Families:
- authorization: ORDER_RESTRICTED, INVALID_SIGNATURE, EXPIRED,
  CALLER_NOT_PROTOCOL, INCORRECT_FULFILLER, INCORRECT_ORDER,
  MSG_SENDER_NOT_OFFERER
- policy limits: MAX_FILL_EXCEEDED, UNDER_MIN_FILL, BEFORE_START_TIME,
  END_TIME_EXCEEDED
- malformed input: INVALID_EXTRA_DATA, NO_OFFER, NO_CONSIDERATION,
  INVALID_ITEM_TYPE, END_LESS_THAN_CLIFF, INVALID_RATE, INVALID_UNLOCK_DATE
- integrity: INVALID_ZONES, LOCKUP_NOT_WHITELISTED, LOCKUP_INVALID_AMOUNT
- transfer integrity: INSUFFICIENT_PRE_BALANCE, INSUFFICIENT_POST_BALANCE
- construction: NO_WHITELISTED_ADDRESSES, WHITELISTED_ZERO_ADDRESS,
  ZERO_ADDRESS
"""

from __future__ import annotations

import enum
from typing import Optional


class RejectionReason(str, enum.Enum):
    """Machine-readable reason attached to every rejection."""
    # Authorization
    ORDER_RESTRICTED = "ORDER_RESTRICTED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    EXPIRED = "EXPIRED"
    CALLER_NOT_PROTOCOL = "CALLER_NOT_PROTOCOL"
    INCORRECT_FULFILLER = "INCORRECT_FULFILLER"
    INCORRECT_ORDER = "INCORRECT_ORDER"
    MSG_SENDER_NOT_OFFERER = "MSG_SENDER_NOT_OFFERER"
    # Policy limits
    MAX_FILL_EXCEEDED = "MAX_FILL_EXCEEDED"
    UNDER_MIN_FILL = "UNDER_MIN_FILL"
    BEFORE_START_TIME = "BEFORE_START_TIME"
    END_TIME_EXCEEDED = "END_TIME_EXCEEDED"
    # Malformed input
    INVALID_EXTRA_DATA = "INVALID_EXTRA_DATA"
    NO_OFFER = "NO_OFFER"
    NO_CONSIDERATION = "NO_CONSIDERATION"
    INVALID_ITEM_TYPE = "INVALID_ITEM_TYPE"
    END_LESS_THAN_CLIFF = "END_LESS_THAN_CLIFF"
    INVALID_RATE = "INVALID_RATE"
    INVALID_UNLOCK_DATE = "INVALID_UNLOCK_DATE"
    # Integrity
    INVALID_ZONES = "INVALID_ZONES"
    LOCKUP_NOT_WHITELISTED = "LOCKUP_NOT_WHITELISTED"
    LOCKUP_INVALID_AMOUNT = "LOCKUP_INVALID_AMOUNT"
    # Transfer integrity
    INSUFFICIENT_PRE_BALANCE = "INSUFFICIENT_PRE_BALANCE"
    INSUFFICIENT_POST_BALANCE = "INSUFFICIENT_POST_BALANCE"
    # Construction
    NO_WHITELISTED_ADDRESSES = "NO_WHITELISTED_ADDRESSES"
    WHITELISTED_ZERO_ADDRESS = "WHITELISTED_ZERO_ADDRESS"
    ZERO_ADDRESS = "ZERO_ADDRESS"


class ZoneRejection(ValueError):
    """Raised when a zone or hook refuses a fulfillment."""

    def __init__(self, reason: RejectionReason, detail: Optional[str] = None) -> None:
        self.reason = reason
        self.detail = detail
        # Name of the zone that logged this rejection, once logged
        self.zone: Optional[str] = None
        message = reason.value if detail is None else f"{reason.value}: {detail}"
        super().__init__(message)


class SettlementError(ValueError):
    """Raised by the settlement protocol for failures outside any zone."""


class TokenError(ValueError):
    """Raised by a token or vesting service when a transfer cannot happen."""
