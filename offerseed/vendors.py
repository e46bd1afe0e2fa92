"""Static vendor catalog used to fill purchase/request segments and offer copy."""

from __future__ import annotations

from typing import Dict, Tuple

Vendor = Dict[str, str]

VENDORS: Tuple[Vendor, ...] = (
    {"vendor": "Starbucks", "tld": "com"},
    {"vendor": "Chipotle", "tld": "com"},
    {"vendor": "Walgreens", "tld": "com"},
    {"vendor": "Duane", "tld": "com"},
    {"vendor": "Sephora", "tld": "com"},
    {"vendor": "Uniqlo", "tld": "com"},
    {"vendor": "Sweetgreen", "tld": "com"},
    {"vendor": "Target", "tld": "com"},
    {"vendor": "Shakeshack", "tld": "com"},
    {"vendor": "Zara", "tld": "com"},
    {"vendor": "Etsy", "tld": "com"},
    {"vendor": "Spotify", "tld": "com"},
    {"vendor": "Dunkin", "tld": "com"},
    {"vendor": "Levis", "tld": "com"},
    {"vendor": "Lululemon", "tld": "com"},
    {"vendor": "Bloomingdales", "tld": "com"},
    {"vendor": "Macys", "tld": "com"},
    {"vendor": "Nordstrom", "tld": "com"},
    {"vendor": "Petco", "tld": "com"},
    {"vendor": "Citibike", "tld": "nyc"},
    {"vendor": "Lyft", "tld": "com"},
    {"vendor": "Blink", "tld": "fitness"},
    {"vendor": "Equinox", "tld": "com"},
    {"vendor": "Wegmans", "tld": "com"},
    {"vendor": "Fairway", "tld": "market"},
    {"vendor": "Zabars", "tld": "com"},
    {"vendor": "Strand", "tld": "books"},
    {"vendor": "Kiehls", "tld": "com"},
    {"vendor": "Glossier", "tld": "com"},
    {"vendor": "Allbirds", "tld": "com"},
    {"vendor": "Warbyparker", "tld": "com"},
    {"vendor": "Joes", "tld": "pizza"},
    {"vendor": "Bluebottle", "tld": "coffee"},
    {"vendor": "Eataly", "tld": "com"},
    {"vendor": "Trader", "tld": "joes"},
    {"vendor": "Apple", "tld": "com"},
    {"vendor": "Samsung", "tld": "com"},
    {"vendor": "Verizon", "tld": "com"},
    {"vendor": "Tmobile", "tld": "com"},
    {"vendor": "Mcdonalds", "tld": "com"},
)


def vendor_domain(vendor: Vendor) -> str:
    return f"{vendor['vendor'].lower()}.{vendor['tld']}"
