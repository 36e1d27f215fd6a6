# app/modules/patterns/schemas.py
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from app.shared.enums import PatternType, TimePeriod

DEFAULT_PATTERN_TYPES = [PatternType.COMPLETION_TIME, PatternType.SUCCESS_RATE, PatternType.ERROR_PATTERNS]


class DateRangeIn(BaseModel):
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def check_order(self):
        # dates naïves interprétées en UTC
        if self.start_date.tzinfo is None:
            self.start_date = self.start_date.replace(tzinfo=timezone.utc)
        if self.end_date.tzinfo is None:
            self.end_date = self.end_date.replace(tzinfo=timezone.utc)
        if self.start_date > self.end_date:
            raise ValueError("start_date doit précéder end_date")
        return self


class PatternAnalyzeIn(BaseModel):
    sop_ids: Optional[List[int]] = None
    pattern_types: List[PatternType] = Field(
        default_factory=lambda: list(DEFAULT_PATTERN_TYPES), min_length=1
    )
    time_period: TimePeriod = TimePeriod.WEEKLY
    date_range: Optional[DateRangeIn] = None
    minimum_sample_size: int = Field(10, ge=1)


class PatternOut(BaseModel):
    id: Optional[int] = None
    sop_id: int
    pattern_type: str
    time_period: str
    pattern_data: Dict[str, Any]
    statistical_metrics: Dict[str, Any]
    insights: Dict[str, List[str]]
    confidence_level: float = Field(..., ge=0, le=1)
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class PatternAnalyzeOut(BaseModel):
    patterns: List[PatternOut]
    summary: Dict[str, Any]
