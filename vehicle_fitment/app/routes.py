"""FastAPI route definitions for the vehicle selector and compatibility API."""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field, ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

from supabase import Client

from ..core.config import get_settings
from ..core.dependencies import get_catalog_filter, get_options_provider, get_supabase
from ..core.enums import FilterMode, Level
from ..core.errors import FetchError
from ..core.logging import log_error, logger
from ..db.catalog import fetch_catalog_items
from ..models.catalog import CatalogItem
from ..models.vehicle import Option, VehicleSelection
from ..services.catalog_filter import CatalogFilter, count_by_status
from ..services.compatibility import match
from ..services.descriptors import parse_descriptor
from ..services.selector.providers import OptionsProvider

router = APIRouter()

# Rate limiter (limit string read from settings on each request)
limiter = Limiter(key_func=get_remote_address)


# ---------------------------------------------------------------------------
# Request / Response Models
# ---------------------------------------------------------------------------


class SelectionPayload(BaseModel):
    brand: Optional[str] = Field(default=None, max_length=100)
    model: Optional[str] = Field(default=None, max_length=100)
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    engine: Optional[str] = Field(default=None, max_length=100)
    engine_code: Optional[str] = Field(default=None, max_length=50)

    def to_selection(self) -> VehicleSelection:
        """Build the selection, turning chain errors into a 422."""
        try:
            return VehicleSelection.from_values(
                brand=self.brand,
                model=self.model,
                year=self.year,
                engine=self.engine,
                engine_code=self.engine_code,
            )
        except ValidationError as e:
            raise HTTPException(
                status_code=422,
                detail="Each selected level needs every level above it "
                f"(brand > model > year > engine): {e.errors()[0]['msg']}",
            )


class CompatibilityCheckRequest(BaseModel):
    selection: SelectionPayload = Field(default_factory=SelectionPayload)
    descriptor: Optional[Any] = None


class ItemPayload(BaseModel):
    id: str
    name: str = ""
    sku: str = ""
    compatibility: Optional[Any] = None

    def to_item(self) -> CatalogItem:
        descriptor = (
            parse_descriptor(self.compatibility) if self.compatibility is not None else None
        )
        return CatalogItem(id=self.id, name=self.name, sku=self.sku, descriptor=descriptor)


class CatalogFilterRequest(BaseModel):
    selection: SelectionPayload = Field(default_factory=SelectionPayload)
    mode: Optional[str] = None
    items: Optional[list[ItemPayload]] = Field(default=None, max_length=1000)
    category_id: Optional[str] = None


def _options_response(options: list[Option], **parent: Any) -> dict[str, Any]:
    return {
        "success": True,
        "data": [o.model_dump() for o in options],
        "count": len(options),
        **parent,
    }


async def _load_options(
    provider: OptionsProvider, level: Level, parent_id: Optional[str]
) -> list[Option]:
    try:
        return await provider.fetch_options(level, parent_id)
    except FetchError as e:
        log_error(f"Failed to fetch vehicle {level.value}s", e, parent_id=parent_id)
        raise HTTPException(
            status_code=500, detail=f"Failed to fetch vehicle {level.value}s"
        )


# ---------------------------------------------------------------------------
# Vehicle selector option lists
# ---------------------------------------------------------------------------


@router.get("/vehicle-selector/brands")
async def get_brands(
    provider: Annotated[OptionsProvider, Depends(get_options_provider)],
):
    """All active vehicle brands, alphabetically."""
    options = await _load_options(provider, Level.BRAND, None)
    return _options_response(options)


@router.get("/vehicle-selector/models")
async def get_models(
    provider: Annotated[OptionsProvider, Depends(get_options_provider)],
    brand_id: Annotated[Optional[str], Query(alias="brandId")] = None,
):
    """Models for one brand."""
    if not brand_id:
        raise HTTPException(status_code=400, detail="Brand ID is required")
    options = await _load_options(provider, Level.MODEL, brand_id)
    return _options_response(options, brandId=brand_id)


@router.get("/vehicle-selector/years")
async def get_years(
    provider: Annotated[OptionsProvider, Depends(get_options_provider)],
    model_id: Annotated[Optional[str], Query(alias="modelId")] = None,
):
    """Model years for one model, newest first."""
    if not model_id:
        raise HTTPException(status_code=400, detail="Model ID is required")
    options = await _load_options(provider, Level.YEAR, model_id)
    return _options_response(options, modelId=model_id)


@router.get("/vehicle-selector/engines")
async def get_engines(
    provider: Annotated[OptionsProvider, Depends(get_options_provider)],
    year_id: Annotated[Optional[str], Query(alias="yearId")] = None,
):
    """Engines for one model year, most powerful first."""
    if not year_id:
        raise HTTPException(status_code=400, detail="Year ID is required")
    options = await _load_options(provider, Level.ENGINE, year_id)
    return _options_response(options, yearId=year_id)


# ---------------------------------------------------------------------------
# Compatibility
# ---------------------------------------------------------------------------


@router.post("/compatibility/check")
async def check_compatibility(req: CompatibilityCheckRequest):
    """Match one selection against one compatibility descriptor."""
    selection = req.selection.to_selection()
    descriptor = parse_descriptor(req.descriptor) if req.descriptor is not None else None
    verdict = match(selection, descriptor)
    return {
        "selection": selection.path(),
        "verdict": verdict.model_dump(mode="json"),
    }


@router.post("/catalog/filter")
@limiter.limit(lambda: get_settings().rate_limit)
async def filter_catalog(
    request: Request,
    req: CatalogFilterRequest,
    supabase: Annotated[Client, Depends(get_supabase)],
    catalog: Annotated[CatalogFilter, Depends(get_catalog_filter)],
):
    """Filter catalog items by compatibility with the selected vehicle.

    Uses the posted items when given, otherwise the active products.
    """
    selection = req.selection.to_selection()
    mode = FilterMode.from_string(req.mode or get_settings().default_filter_mode)

    if req.items is not None:
        items = [i.to_item() for i in req.items]
    else:
        try:
            items = await fetch_catalog_items(category_id=req.category_id, client=supabase)
        except Exception as e:
            log_error("Failed to load catalog", e, category_id=req.category_id)
            raise HTTPException(status_code=500, detail="Failed to load catalog")

    evaluated = catalog.evaluate(items, selection)
    results = catalog.arrange(evaluated, mode)
    counts = count_by_status(evaluated)
    logger.info(
        f"Catalog filtered selection='{selection.path()}' mode={mode.value} "
        f"kept={len(results)}/{counts.total}"
    )
    return {
        "selection": selection.path(),
        "summary": selection.summary(),
        "mode": mode.value,
        "counts": counts.model_dump(),
        "results": [r.model_dump(mode="json") for r in results],
    }
