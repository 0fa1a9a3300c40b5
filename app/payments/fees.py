"""
Platform fee calculation.

Amounts are integer cents. The fee is PLATFORM_FEE_PERCENT of the amount,
rounded half up to the cent, and the seller receives the remainder, so the
two parts always add up to the amount exactly.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings

from payments.exceptions import FeeSplitMismatchError

DEFAULT_PLATFORM_FEE_PERCENT = 8


@dataclass(frozen=True)
class FeeSplit:
    amount_cents: int
    platform_fee_cents: int
    seller_amount_cents: int

    def __post_init__(self) -> None:
        if self.platform_fee_cents + self.seller_amount_cents != self.amount_cents:
            raise FeeSplitMismatchError(
                "Platform fee and seller amount do not add up to the amount",
                details={
                    "amount_cents": self.amount_cents,
                    "platform_fee_cents": self.platform_fee_cents,
                    "seller_amount_cents": self.seller_amount_cents,
                },
            )


def platform_fee_percent() -> int:
    return int(getattr(settings, "PLATFORM_FEE_PERCENT", DEFAULT_PLATFORM_FEE_PERCENT))


def calculate_fee_split(amount_cents: int, fee_percent: int | None = None) -> FeeSplit:
    """
    Split an amount into platform fee and seller share.

    Example:
        calculate_fee_split(5000)   # FeeSplit(5000, 400, 4600)
        calculate_fee_split(20000)  # FeeSplit(20000, 1600, 18400)
    """
    if amount_cents <= 0:
        raise ValueError("amount_cents must be positive")
    percent = platform_fee_percent() if fee_percent is None else fee_percent
    if not 0 <= percent <= 100:
        raise ValueError("fee percent must be between 0 and 100")

    platform_fee_cents = (amount_cents * percent + 50) // 100
    return FeeSplit(
        amount_cents=amount_cents,
        platform_fee_cents=platform_fee_cents,
        seller_amount_cents=amount_cents - platform_fee_cents,
    )
