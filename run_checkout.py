from __future__ import annotations

import argparse
import logging
import sys
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from checkout_engine.checkout import Checkout
from checkout_engine.rules import PricingError, RuleSet, example_rule_set, load_rules

# (items scanned in order, expected total)
EXAMPLE_CARTS: List[Tuple[List[str], Decimal]] = [
    (["FR1", "SR1", "FR1", "FR1", "CF1"], Decimal("22.45")),
    (["FR1", "FR1"], Decimal("3.11")),
    (["SR1", "SR1", "FR1", "SR1"], Decimal("16.61")),
]

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def run_cart(rule_set: RuleSet, items: Sequence[str]) -> Decimal:
    co = Checkout.create(rule_set)
    for code in items:
        co.add_item(code)
    return co.compute_total()


def main(argv: Optional[Sequence[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Price shopping carts against a set of pricing rules.")
    p.add_argument("--rules", type=str, default=None, help="JSON file with product rules (default: built-in example)")
    p.add_argument("--items", nargs="+", default=None, help="Product codes to scan, e.g. FR1 SR1 FR1")
    p.add_argument("--log-level", type=str.upper, default="WARNING", choices=LOG_LEVELS)
    args = p.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        rule_set = load_rules(args.rules) if args.rules else example_rule_set()

        if args.items:
            print(f"total: {run_cart(rule_set, args.items)}")
            return 0

        for n, (items, expected) in enumerate(EXAMPLE_CARTS, start=1):
            total = run_cart(rule_set, items)
            print(f"cart{n} {' '.join(items)}: total is {total}, should be {expected}")
    except (PricingError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
