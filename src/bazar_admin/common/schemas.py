"""Pydantic schemas shared by the admin features (bulk results, daily trends)."""
from pydantic import BaseModel, Field
from typing import List
import datetime


class BulkOperationResponse(BaseModel):
    message: str
    success_count: int = Field(..., ge=0, description="Number of targets processed successfully")
    errors: List[str] = Field(default_factory=list, description="One message per target that was skipped")


class DailyCount(BaseModel):
    date: datetime.date
    count: int
