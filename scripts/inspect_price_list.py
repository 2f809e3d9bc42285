#!/usr/bin/env python
"""Load the configured price list and report how many tire sizes parse."""

import sys
from collections import Counter
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from agent_api.core.config import get_settings
from agent_api.services.price_list import PriceListError, PriceListStore
from agent_api.services.tire_spec import parse_tire_spec


def main():
    settings = get_settings()
    store = PriceListStore.from_settings(settings)

    print(f"Loading price list from {store.path}...")
    try:
        count = store.reload()
    except PriceListError as e:
        print(f"Error: {e}")
        sys.exit(1)

    by_type = Counter()
    unparsed = []
    for product in store.products:
        spec = parse_tire_spec(product.name)
        if spec.parseable:
            by_type[spec.vehicle_type.value] += 1
        else:
            unparsed.append(product)

    print(f"Loaded {count} products")
    for vehicle_type, n in sorted(by_type.items()):
        print(f"  {vehicle_type}: {n} tire sizes")
    print(f"  without tire size: {len(unparsed)}")

    if "-v" in sys.argv[1:]:
        for product in unparsed[:50]:
            print(f"    {product.code}  {product.name}")


if __name__ == "__main__":
    main()
