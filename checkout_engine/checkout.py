from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from checkout_engine.models import ProductRule
from checkout_engine.rules import PricingError, RuleSet

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ROUNDING = ROUND_HALF_UP


class UnknownProduct(PricingError, KeyError):
    def __init__(self, product_code: str):
        super().__init__(product_code)
        self.product_code = product_code

    def __str__(self) -> str:
        return f"Unknown product {self.product_code}"


class NoApplicableTier(PricingError):
    def __init__(self, product_code: str, quantity: int):
        super().__init__(f"No pricing tier of {product_code} covers quantity {quantity}")
        self.product_code = product_code
        self.quantity = quantity


@dataclass(slots=True)
class LineAmounts:
    product_code: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    discount: Decimal
    total: Decimal


def resolve_unit_price(rule: ProductRule, quantity: int) -> Decimal:
    """
    Unit price of the tier with the largest threshold not above `quantity`.

    Thresholds are compared as integers, so 10 sorts after 5.
    """
    idx = bisect_right(rule.thresholds, quantity)
    if idx == 0:
        raise NoApplicableTier(rule.product_code, quantity)
    return rule.tiers[idx - 1].unit_price


def price_line(rule: ProductRule, quantity: int) -> LineAmounts:
    unit_price = resolve_unit_price(rule, quantity)
    subtotal = unit_price * quantity
    discount = Decimal("0")
    if rule.buy_one_get_one_free:
        # every second unit is free
        discount = unit_price * (quantity // 2)
    return LineAmounts(
        product_code=rule.product_code,
        quantity=quantity,
        unit_price=unit_price,
        subtotal=subtotal,
        discount=discount,
        total=subtotal - discount,
    )


class Checkout:
    """
    A cart bound to one rule set.

    Holds one quantity per product of the rule set, all starting at zero.
    `compute_total` derives the total from the current quantities each
    time it is called; nothing is cached between calls.

    Not thread-safe: one writer at a time.
    """

    def __init__(self, rule_set: RuleSet):
        self.rule_set = rule_set
        self._cart: Dict[str, int] = {code: 0 for code in rule_set.product_codes()}

    @classmethod
    def create(cls, rule_set: RuleSet) -> Checkout:
        return cls(rule_set)

    def add_item(self, product_code: str) -> None:
        if product_code not in self._cart:
            logger.warning("rejected unknown product %s", product_code)
            raise UnknownProduct(product_code)
        self._cart[product_code] += 1
        logger.debug("added %s (qty=%d)", product_code, self._cart[product_code])

    def quantity(self, product_code: str) -> int:
        if product_code not in self._cart:
            raise UnknownProduct(product_code)
        return self._cart[product_code]

    def items(self) -> Dict[str, int]:
        return dict(self._cart)

    def lines(self) -> List[LineAmounts]:
        result: List[LineAmounts] = []
        for rule in self.rule_set:
            qty = self._cart[rule.product_code]
            if qty > 0:
                result.append(price_line(rule, qty))
        return result

    def compute_total(self) -> Decimal:
        total = sum((line.total for line in self.lines()), Decimal("0"))
        total = total.quantize(CENT, rounding=ROUNDING)
        logger.debug("total computed: %s for %s", total, self._cart)
        return total
