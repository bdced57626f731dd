"""
Pydantic schemas for Sentiment API requests and responses.
"""
from datetime import datetime
from typing import List, Optional, Dict

from pydantic import BaseModel, Field

from sentiment.models import utc_now

# =======================
# COMMON
# =======================

class BaseResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)

# =======================
# REQUESTS
# =======================

class RefreshRequest(BaseModel):
    symbol: Optional[str] = None

# =======================
# SENTIMENT
# =======================

class SentimentReadingSchema(BaseModel):
    symbol: str
    source: str
    long_percentage: float
    short_percentage: float
    volume: Optional[float] = None
    long_positions: Optional[int] = None
    short_positions: Optional[int] = None
    timestamp: datetime
    strategy: str  # headless, simple_http, synthetic

class ConsensusSchema(BaseModel):
    long_percentage: float
    short_percentage: float
    source_count: int

class SourceOutcomeSchema(BaseModel):
    source: str
    strategy: str
    success: bool
    attempts: int
    error: Optional[str] = None

class RefreshData(BaseModel):
    symbol: str
    sentiments: List[SentimentReadingSchema]
    weighted: ConsensusSchema
    timestamp: datetime
    outcomes: List[SourceOutcomeSchema]

class RefreshResponse(BaseResponse):
    data: RefreshData

class LatestData(BaseModel):
    symbol: str
    sentiments: List[SentimentReadingSchema]
    weighted: ConsensusSchema
    last_update: datetime

class LatestResponse(BaseResponse):
    data: LatestData

class SymbolsResponse(BaseResponse):
    data: List[str]

class SymbolSummarySchema(BaseModel):
    symbol: str
    weighted: ConsensusSchema
    sources: int
    last_update: datetime

class MultipleResponse(BaseResponse):
    data: List[SymbolSummarySchema]

# =======================
# HEALTH
# =======================

class SourceHealthSchema(BaseModel):
    status: str  # healthy, degraded, unavailable, unknown
    last_check: datetime
    latency_ms: Optional[float] = None
    error_count: int
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None
    consecutive_failures: int

class SourceHealthResponse(BaseResponse):
    data: Dict[str, SourceHealthSchema]
