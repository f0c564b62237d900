from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class PricingTier:
    threshold: int
    unit_price: Decimal


@dataclass(frozen=True, slots=True)
class ProductRule:
    """
    Pricing rule for one product.

    Each tier reads as "if the customer buys at least `threshold` units,
    every unit costs `unit_price`". Tiers are stored sorted by threshold,
    one tier per threshold; when a threshold is repeated the last one wins.
    """

    product_code: str
    buy_one_get_one_free: bool
    tiers: Tuple[PricingTier, ...]
    product_name: Optional[str] = None

    def __post_init__(self) -> None:
        by_threshold: Dict[int, PricingTier] = {}
        for tier in self.tiers:
            by_threshold[tier.threshold] = tier
        # frozen: bypass the generated __setattr__
        object.__setattr__(self, "tiers", tuple(by_threshold[t] for t in sorted(by_threshold)))

    @classmethod
    def build(
        cls,
        product_code: str,
        tiers: dict[int, Decimal],
        buy_one_get_one_free: bool = False,
        product_name: Optional[str] = None,
    ) -> ProductRule:
        return cls(
            product_code=product_code,
            buy_one_get_one_free=buy_one_get_one_free,
            tiers=tuple(PricingTier(threshold, price) for threshold, price in tiers.items()),
            product_name=product_name,
        )

    @property
    def thresholds(self) -> Tuple[int, ...]:
        return tuple(tier.threshold for tier in self.tiers)
