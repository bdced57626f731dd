from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from api.dependencies import get_aggregator, get_default_symbol, get_default_symbols
from api.schemas import (
    LatestResponse,
    MultipleResponse,
    RefreshRequest,
    RefreshResponse,
    SourceHealthResponse,
    SymbolsResponse,
)
from sentiment import PersistenceError, SentimentAggregator

router = APIRouter(prefix="/sentiment", tags=["Sentiment"])


def _unavailable(e: PersistenceError) -> HTTPException:
    return HTTPException(status_code=503, detail=str(e))


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_sentiment(
    request: Optional[RefreshRequest] = Body(default=None),
    aggregator: SentimentAggregator = Depends(get_aggregator),
    default_symbol: str = Depends(get_default_symbol),
):
    """
    Fetch all sources for a symbol, persist and return the merged set.
    """
    symbol = request.symbol if request and request.symbol else default_symbol
    try:
        result = await aggregator.refresh(symbol)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceError as e:
        raise _unavailable(e)
    return RefreshResponse(success=True, data=result.to_dict())


@router.get("/latest", response_model=LatestResponse)
async def get_latest_sentiment(
    symbol: Optional[str] = Query(None),
    aggregator: SentimentAggregator = Depends(get_aggregator),
    default_symbol: str = Depends(get_default_symbol),
):
    """
    Most recent stored reading per source. Does not fetch.
    """
    try:
        latest = await aggregator.get_latest(symbol or default_symbol)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceError as e:
        raise _unavailable(e)
    return LatestResponse(success=True, data=latest.to_dict())


@router.get("/symbols", response_model=SymbolsResponse)
async def get_symbols(aggregator: SentimentAggregator = Depends(get_aggregator)):
    try:
        symbols = await aggregator.get_all_symbols()
    except PersistenceError as e:
        raise _unavailable(e)
    return SymbolsResponse(success=True, data=symbols)


@router.get("/multiple", response_model=MultipleResponse)
async def get_multiple_sentiment(
    symbols: Optional[List[str]] = Query(None),
    aggregator: SentimentAggregator = Depends(get_aggregator),
    default_symbols: List[str] = Depends(get_default_symbols),
):
    try:
        summaries = await aggregator.get_multiple(symbols or default_symbols)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceError as e:
        raise _unavailable(e)
    return MultipleResponse(success=True, data=[s.to_dict() for s in summaries])


@router.get("/health", response_model=SourceHealthResponse)
async def get_source_health(aggregator: SentimentAggregator = Depends(get_aggregator)):
    """
    Health of every fetcher, keyed "<source>/<strategy>".
    """
    health = await aggregator.get_health()
    return SourceHealthResponse(
        success=True,
        data={key: value.to_dict() for key, value in health.items()},
    )
