"""Pricing resolver: maps (service, destination region) to a fee.

Two premium regions (the capital and the commercial hub) carry the higher
fee; every other region carries the standard fee. PPA changes are a flat fee
regardless of region.
"""
from dataclasses import dataclass
from typing import Optional

from app.config import settings
from app.errors import ValidationError
from app.models.service_request import ServiceType


NIGERIAN_REGIONS = (
    "Abia", "Adamawa", "Akwa Ibom", "Anambra", "Bauchi", "Bayelsa", "Benue",
    "Borno", "Cross River", "Delta", "Ebonyi", "Edo", "Ekiti", "Enugu", "FCT",
    "Gombe", "Imo", "Jigawa", "Kaduna", "Kano", "Katsina", "Kebbi", "Kogi",
    "Kwara", "Lagos", "Nasarawa", "Niger", "Ogun", "Ondo", "Osun", "Oyo",
    "Plateau", "Rivers", "Sokoto", "Taraba", "Yobe", "Zamfara",
)
PREMIUM_REGIONS = frozenset({"FCT", "Lagos"})

_CANONICAL = {name.casefold(): name for name in NIGERIAN_REGIONS}


@dataclass(frozen=True)
class Quote:
    amount: int
    display_price: str

    @property
    def is_complete(self) -> bool:
        return self.amount > 0


def format_naira(amount: int) -> str:
    return f"₦{amount:,}"


def canonical_region(region: Optional[str]) -> Optional[str]:
    """Trim and case-fold ``region`` onto the catalog spelling.

    Returns None for an unset/blank region. Raises ValidationError for a
    region outside the catalog.
    """
    if region is None or not region.strip():
        return None
    name = _CANONICAL.get(" ".join(region.split()).casefold())
    if name is None:
        raise ValidationError(f"Unknown state: {region!r}")
    return name


def region_tier(region: str) -> str:
    return "premium" if region in PREMIUM_REGIONS else "standard"


def price(service: ServiceType, destination_region: Optional[str]) -> Quote:
    """Return the fee for ``service`` delivered to ``destination_region``.

    An unset region yields ``Quote(0, "₦0")`` for region-priced services,
    which callers must treat as an incomplete form.
    """
    if service == ServiceType.ppa_change:
        return Quote(settings.PPA_CHANGE_FEE, format_naira(settings.PPA_CHANGE_FEE))

    region = canonical_region(destination_region)
    if region is None:
        return Quote(0, format_naira(0))

    amount = settings.PREMIUM_FEE if region in PREMIUM_REGIONS else settings.STANDARD_FEE
    return Quote(amount, format_naira(amount))


def price_range(service: ServiceType) -> tuple[int, int]:
    if service == ServiceType.ppa_change:
        return settings.PPA_CHANGE_FEE, settings.PPA_CHANGE_FEE
    low, high = sorted((settings.STANDARD_FEE, settings.PREMIUM_FEE))
    return low, high
