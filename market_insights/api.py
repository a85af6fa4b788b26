from datetime import date
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env", override=False)

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from .config import DEFAULT_ANALYSIS_MONTHS
from .db.repo import ListingRepository
from .models.records import ComparableProperty
from .models.reports import Granularity
from .services.comps_service import summarize_comparables
from .services.confidence import calculate_confidence
from .services.market_conditions import MarketConditionsService
from .utils.caching import TTLCache
from .utils.logging import get_logger

LOGGER = get_logger("api")

app = FastAPI(title="Market Insights")
router = APIRouter(prefix="/api")

_SERVICE_SINGLETON: Optional[MarketConditionsService] = None


def get_service() -> MarketConditionsService:
    global _SERVICE_SINGLETON
    if _SERVICE_SINGLETON is None:
        try:
            repository = ListingRepository.from_csv()
        except FileNotFoundError as exc:
            LOGGER.warning("listing_source_unavailable error=%s", exc)
            raise HTTPException(503, detail="listing data source unavailable")
        _SERVICE_SINGLETON = MarketConditionsService(repository, cache=TTLCache())
    return _SERVICE_SINGLETON


class ComparablesRequest(BaseModel):
    comparables: List[ComparableProperty] = Field(default_factory=list)
    as_of: Optional[date] = None


@router.get("/market-conditions")
def market_conditions(
    city: str = Query(..., min_length=1),
    state: str = Query(""),
    property_type: str = Query("all"),
    months: int = Query(DEFAULT_ANALYSIS_MONTHS, ge=1, le=60),
    service: MarketConditionsService = Depends(get_service),
):
    report = service.get_market_conditions(city, state, property_type, months)
    return jsonable_encoder(report)


@router.get("/market-trends")
def market_trends(
    city: str = Query(..., min_length=1),
    state: str = Query(""),
    property_type: str = Query("all"),
    granularity: Granularity = Query(Granularity.MONTH),
    periods: int = Query(24, ge=1, le=120),
    service: MarketConditionsService = Depends(get_service),
):
    items = service.get_trends(city, state, property_type, granularity, periods)
    return jsonable_encoder({"items": items, "total": len(items)})


@router.get("/market-trends/yoy")
def market_trends_yoy(
    city: str = Query(..., min_length=1),
    state: str = Query(""),
    property_type: str = Query("all"),
    service: MarketConditionsService = Depends(get_service),
):
    return jsonable_encoder({"items": service.get_year_over_year(city, state, property_type)})


@router.get("/market-summary")
def market_summary(
    city: str = Query(..., min_length=1),
    state: str = Query(""),
    property_type: str = Query("all"),
    months: int = Query(DEFAULT_ANALYSIS_MONTHS, ge=1, le=60),
    service: MarketConditionsService = Depends(get_service),
):
    summary = service.get_sales_summary(city, state, property_type, months)
    appreciation = service.get_appreciation(city, state, property_type, months)
    return jsonable_encoder({"summary": summary, "appreciation": appreciation})


@router.post("/cma/confidence")
def cma_confidence(req: ComparablesRequest):
    return jsonable_encoder(calculate_confidence(req.comparables, as_of=req.as_of))


@router.post("/cma/summary")
def cma_summary(req: ComparablesRequest):
    summary = summarize_comparables(req.comparables, as_of=req.as_of)
    if summary is None:
        raise HTTPException(422, detail="at least one comparable is required")
    return jsonable_encoder(summary)


@router.get("/health")
def health(): return {"status": "ok"}


app.include_router(router)
