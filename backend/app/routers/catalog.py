"""Service catalog API routes: the entry point for service selection."""
from typing import Optional
from fastapi import APIRouter, Query

from app.models.service_request import ServiceType
from app.schemas.catalog import QuoteOut, RegionOut, ServiceOut
from app.services import pricing_service

router = APIRouter()

DESCRIPTIONS = {
    ServiceType.direct_posting: "Get posted directly to your preferred state and location",
    ServiceType.relocation: "Relocate to a different state during your service year",
    ServiceType.ppa_change: "Change your Place of Primary Assignment",
}


@router.get("/", response_model=list[ServiceOut])
def list_services():
    """List the purchasable services with their price range."""
    services = []
    for service in ServiceType:
        low, high = pricing_service.price_range(service)
        label = pricing_service.format_naira(low)
        if high != low:
            label = f"{label} - {pricing_service.format_naira(high)}"
        services.append(ServiceOut(
            service=service,
            description=DESCRIPTIONS[service],
            min_amount=low,
            max_amount=high,
            price_label=label,
            requires_document=service == ServiceType.ppa_change,
        ))
    return services


@router.get("/regions", response_model=list[RegionOut])
def list_regions():
    """List destination states and their pricing tier."""
    return [
        RegionOut(name=name, tier=pricing_service.region_tier(name))
        for name in pricing_service.NIGERIAN_REGIONS
    ]


@router.get("/quote", response_model=QuoteOut)
def quote(service: ServiceType = Query(...), region: Optional[str] = Query(None)):
    """Price a service for a destination without creating a draft."""
    result = pricing_service.price(service, region)
    canonical = pricing_service.canonical_region(region) if service != ServiceType.ppa_change else None
    return QuoteOut(service=service, region=canonical, amount=result.amount, display_price=result.display_price)
