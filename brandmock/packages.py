from typing import Dict, TypedDict


class Package(TypedDict):
    title: str
    price: int  # cents (USD)
    blurb: str


DEFAULT_PACKAGE = "starter"

PACKAGES: Dict[str, Package] = {
    "starter": {
        "title": "Starter",
        "price": 5000,
        "blurb": "Your logo on one product mockup.",
    },
    "pro": {
        "title": "Pro",
        "price": 10000,
        "blurb": "Logo refresh plus mockups for your product line.",
    },
    "premium": {
        "title": "Premium",
        "price": 20000,
        "blurb": "Full brand kit, mockups and launch assets.",
    },
}


def price_for(package_type: str | None) -> int:
    # unknown tiers pay the base price
    pkg = PACKAGES.get(package_type or "")
    if pkg is None:
        return PACKAGES[DEFAULT_PACKAGE]["price"]
    return pkg["price"]


def label_for(package_type: str | None) -> str:
    return f"{package_type} branding package"
