from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from checkout_engine.models import ProductRule

logger = logging.getLogger(__name__)


class PricingError(Exception):
    pass


class InvalidRuleSet(PricingError, ValueError):
    pass


class RuleSet:
    """
    Read-only collection of product rules, kept in the order it was given.

    Build it with `RuleSet.create` (from `ProductRule` objects) or
    `RuleSet.from_data` (from the plain dict/JSON structure). Nothing
    mutates it afterwards, so any number of checkouts can share one.
    """

    __slots__ = ("_rules", "_by_code")

    def __init__(self, rules: Tuple[ProductRule, ...], by_code: Dict[str, ProductRule]) -> None:
        self._rules = rules
        self._by_code = by_code

    @classmethod
    def create(cls, product_rules: Iterable[ProductRule]) -> RuleSet:
        rules: List[ProductRule] = []
        by_code: Dict[str, ProductRule] = {}
        for rule in product_rules:
            if rule.product_code in by_code:
                raise InvalidRuleSet(f"Duplicate product code {rule.product_code}")
            if not rule.tiers:
                raise InvalidRuleSet(f"Product {rule.product_code} has no pricing tiers")
            rules.append(rule)
            by_code[rule.product_code] = rule

        logger.info("rule set created: %d products (%s)", len(rules), ", ".join(by_code))
        return cls(tuple(rules), by_code)

    @classmethod
    def from_data(cls, rows: Iterable[Mapping[str, Any]]) -> RuleSet:
        return cls.create(_rule_from_row(row) for row in rows)

    def get(self, product_code: str) -> Optional[ProductRule]:
        return self._by_code.get(product_code)

    def product_codes(self) -> List[str]:
        return [rule.product_code for rule in self._rules]

    def __contains__(self, product_code: object) -> bool:
        return product_code in self._by_code

    def __iter__(self) -> Iterator[ProductRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({self.product_codes()!r})"


def _pick(row: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in row:
            return row[key]
    return default


_TRUE_STRINGS = {"true", "yes", "1"}
_FALSE_STRINGS = {"false", "no", "0"}


def _parse_flag(code: str, raw: Any) -> bool:
    """Accept a real bool, or one of true/yes/1 and false/no/0 as strings."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in _TRUE_STRINGS:
            return True
        if value in _FALSE_STRINGS:
            return False
    raise InvalidRuleSet(f"Product {code}: buyOneGetOneFree must be true or false, got {raw!r}")


def _parse_threshold(code: str, raw: Any) -> int:
    # bool is an int subclass, but True is not a quantity
    if isinstance(raw, bool):
        raise InvalidRuleSet(f"Product {code}: bad threshold {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError as e:
            raise InvalidRuleSet(f"Product {code}: bad threshold {raw!r}") from e
    raise InvalidRuleSet(f"Product {code}: bad threshold {raw!r}")


def _rule_from_row(row: Any) -> ProductRule:
    if not isinstance(row, Mapping):
        raise InvalidRuleSet(f"Rule must be a mapping, got {row!r}")

    code = _pick(row, "productCode", "product_code")
    if not isinstance(code, str) or not code:
        raise InvalidRuleSet(f"Rule without a product code: {row!r}")

    pricing = _pick(row, "pricing", "tiers", default={})
    if not isinstance(pricing, Mapping):
        raise InvalidRuleSet(f"Product {code}: pricing must be a mapping of threshold to price")

    tiers: Dict[int, Decimal] = {}
    for raw_threshold, raw_price in pricing.items():
        threshold = _parse_threshold(code, raw_threshold)
        try:
            # str() first so that 3.11 parsed from JSON stays 3.11
            price = Decimal(str(raw_price))
        except (TypeError, ValueError, InvalidOperation) as e:
            raise InvalidRuleSet(f"Product {code}: bad price {raw_price!r} for threshold {threshold}") from e
        tiers[threshold] = price

    return ProductRule.build(
        product_code=code,
        tiers=tiers,
        buy_one_get_one_free=_parse_flag(code, _pick(row, "buyOneGetOneFree", "buy_one_get_one_free", default=False)),
        product_name=_pick(row, "productName", "product_name"),
    )


def load_rules(path: str | Path) -> RuleSet:
    """Read a JSON file holding a list of product rules."""
    with open(path, encoding="utf-8") as f:
        try:
            rows = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidRuleSet(f"{path}: not valid JSON ({e})") from e
    if not isinstance(rows, list):
        raise InvalidRuleSet(f"{path}: expected a list of product rules")
    logger.info("loading rules from %s", path)
    return RuleSet.from_data(rows)


EXAMPLE_RULES: List[Dict[str, Any]] = [
    {"productCode": "FR1", "productName": "Fruit tea", "buyOneGetOneFree": True, "pricing": {1: "3.11"}},
    {"productCode": "SR1", "productName": "Strawberry", "buyOneGetOneFree": False, "pricing": {1: "5.00", 3: "4.50"}},
    {"productCode": "CF1", "productName": "Coffee", "buyOneGetOneFree": False, "pricing": {1: "11.23"}},
]


def example_rule_set() -> RuleSet:
    return RuleSet.from_data(EXAMPLE_RULES)
