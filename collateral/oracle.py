"""
oracle.py - Pre-decoded oracle rates

A debt denominated in a currency other than the debt ledger's token is valued
with a rate pair: `tokens` debt-ledger tokens buy `equivalent` units of the
loan currency. The engine never parses oracle payloads; callers decode them
first and pass the pair together with the raw payload, which the engine only
re-emits in its conversion events.

A pair of zeros means the loan is denominated in the token itself (1:1).
"""

from __future__ import annotations
from dataclasses import dataclass

from .ratio_math import div_ceil


_WORD = 32


@dataclass(frozen=True, slots=True)
class OracleRate:
    """
    Decoded oracle rate.

    Attributes:
        tokens: Debt-ledger tokens per `equivalent` loan-currency units
        equivalent: Loan-currency units matching `tokens`
        data: Raw oracle payload, kept for audit events only
    """
    tokens: int = 0
    equivalent: int = 0
    data: bytes = b""

    def __post_init__(self):
        if self.tokens < 0 or self.equivalent < 0:
            raise ValueError(f"Oracle rate cannot be negative: {self.tokens}/{self.equivalent}")
        if (self.tokens == 0) != (self.equivalent == 0):
            raise ValueError(
                f"Oracle rate must set both tokens and equivalent, or neither: "
                f"{self.tokens}/{self.equivalent}"
            )

    @property
    def is_identity(self) -> bool:
        return self.tokens == 0 and self.equivalent == 0

    def currency_to_tokens(self, amount: int, ceil: bool = False) -> int:
        """Loan-currency amount expressed in debt-ledger tokens."""
        if self.is_identity:
            return amount
        if ceil:
            return div_ceil(amount * self.tokens, self.equivalent)
        return amount * self.tokens // self.equivalent

    def tokens_to_currency(self, amount: int) -> int:
        """Debt-ledger tokens expressed in loan currency, rounded down."""
        if self.is_identity:
            return amount
        return amount * self.equivalent // self.tokens


NO_ORACLE = OracleRate()


def encode_rate(tokens: int, equivalent: int) -> OracleRate:
    """
    Build an OracleRate whose payload is the pair as two 32-byte big-endian words.

    Mirrors what a simple on-chain rate oracle publishes, so tests and
    simulations have a realistic payload to carry through events.
    """
    data = tokens.to_bytes(_WORD, "big") + equivalent.to_bytes(_WORD, "big")
    return OracleRate(tokens=tokens, equivalent=equivalent, data=data)


def decode_rate(data: bytes) -> OracleRate:
    """
    Inverse of encode_rate(). An empty payload decodes to NO_ORACLE.

    Raises:
        ValueError: If the payload is not exactly two 32-byte words
    """
    if not data:
        return NO_ORACLE
    if len(data) != 2 * _WORD:
        raise ValueError(f"Oracle payload must be {2 * _WORD} bytes, got {len(data)}")
    tokens = int.from_bytes(data[:_WORD], "big")
    equivalent = int.from_bytes(data[_WORD:], "big")
    return OracleRate(tokens=tokens, equivalent=equivalent, data=bytes(data))
