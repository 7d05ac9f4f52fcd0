# app/shared/catalog.py
"""Services offered by the shop, grouped the way the billing form shows them."""
from typing import Any, Dict, List

UPGRADE_LEVELS = ("Lv 1", "Lv 2", "Lv 3", "Lv 4", "Lv 5")
STOCK_TYPE = "Stock"

# Levelled performance upgrades: one level per upgrade can go on a bill
PERFORMANCE_UPGRADES = {
    "ENGINE UPGRADE": (8000, 11100, 13000, 17500, 22000),
    "BRAKE UPGRADE": (8500, 10500, 13000, 15500, 18000),
    "TRANSMISSION UPGRADE": (8200, 10400, 12600, 16000, 19500),
    "SUSPENSION UPGRADE": (8500, 10500, 13000, 15500, 18000),
}

FLAT_PRICED = {
    "Performance": {
        "TURBO UPGRADE": 15000,
    },
    "Exterior Visuals": {
        "SPOILER": 1500,
        "FRONT BUMPER": 1500,
        "REAR BUMPER": 1500,
        "SIDE SKIRT": 1500,
        "EXHAUST": 1500,
        "ROLL CAGE": 1500,
        "GRILLE": 1500,
        "HOOD": 1500,
        "LEFT FENDER": 1500,
        "ROOF": 1500,
        "WHEELS": 1500,
        "WHEELS SMOKE": 1500,
        "CUSTOM WHEELS": 1500,
        "LIVERY": 2000,
        "RESPRAY": 800,
        "WINDOW TINT": 1500,
        "NEONS": 1500,
        "XENONS": 1500,
        "PLATE INDEX": 1000,
        "VANITY PLATES": 1000,
        "VEHICLE EXTRAS": 1000,
    },
    "Interior / Misc": {
        "SEATS": 1500,
        "STEERING WHEEL": 1000,
        "ENGINE BLOCK": 1500,
        "AIR FILTER": 1000,
        "STRUT": 1500,
        "ARCH COVER": 1500,
        "AERIAL": 1500,
        "TRIM A": 1500,
        "TRIM B": 1500,
        "TRUNK": 1500,
        "FUEL TANK": 1500,
        "WINDOW": 1500,
        "HORNS": 1500,
        "DASHBOARD": 1500,
        "DIAL": 1500,
        "DOOR SPEAKER": 1500,
    },
}

# Quick bill: routine repair billed without going through the catalog
REPAIR_CUSTOMER_NAME = "Vehicle Repair"
REPAIR_VEHICLE_PLATE = "REPAIR"
REPAIR_ITEM_NAME = "Vehicle Repair"
REPAIR_ITEM_CATEGORY = "Repair"
REPAIR_ITEM_TYPE = "Standard"
REPAIR_PRICE = 500


def get_catalog() -> List[Dict[str, Any]]:
    performance_items: List[Dict[str, Any]] = [
        {
            "name": name,
            "levels": [
                {"level": level, "price": price}
                for level, price in zip(UPGRADE_LEVELS, prices)
            ],
            "single_level": True,
        }
        for name, prices in PERFORMANCE_UPGRADES.items()
    ]

    catalog = []
    for category, items in FLAT_PRICED.items():
        entries = performance_items if category == "Performance" else []
        entries = entries + [
            {"name": name, "levels": [{"level": STOCK_TYPE, "price": price}], "single_level": False}
            for name, price in items.items()
        ]
        catalog.append({"name": category, "items": entries})

    return catalog
