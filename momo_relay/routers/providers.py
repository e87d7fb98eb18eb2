"""Provider catalog endpoints."""
from fastapi import APIRouter, Depends

from momo_relay.dependencies import get_provider_catalog
from momo_relay.schemas.provider import Provider
from momo_relay.storage import ProviderCatalog

router = APIRouter(prefix="/api/providers", tags=["providers"])


@router.get("", response_model=list[Provider])
async def list_providers(catalog: ProviderCatalog = Depends(get_provider_catalog)) -> list[Provider]:
    return await catalog.list_all()


@router.get("/{country}", response_model=list[Provider])
async def list_country_providers(
    country: str, catalog: ProviderCatalog = Depends(get_provider_catalog)
) -> list[Provider]:
    return await catalog.list_by_country(country)
