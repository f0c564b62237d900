"""Pytest fixtures for the checkout engine."""

from decimal import Decimal

import pytest

from checkout_engine.checkout import Checkout
from checkout_engine.models import ProductRule
from checkout_engine.rules import RuleSet, example_rule_set


@pytest.fixture
def example_rules() -> RuleSet:
    return example_rule_set()


@pytest.fixture
def checkout(example_rules) -> Checkout:
    return Checkout.create(example_rules)


@pytest.fixture
def make_checkout():
    """Build a checkout over a single product and fill it with `qty` units."""

    def _make(tiers, qty: int, bogo: bool = False) -> Checkout:
        rule = ProductRule.build("P1", {t: Decimal(p) for t, p in tiers.items()}, buy_one_get_one_free=bogo)
        co = Checkout.create(RuleSet.create([rule]))
        for _ in range(qty):
            co.add_item("P1")
        return co

    return _make
