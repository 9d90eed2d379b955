"""User report moderation schemas

Request and response models for the admin report endpoints:

1. Report listing and details
2. Handling a single report (with an optional action against the reported user)
3. Bulk handling
4. Report statistics"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
import datetime

from ...common.schemas import DailyCount


class ReportListQuery(BaseModel):
    status: Optional[str] = Field(None, description="Only reports with this status")
    report_type: Optional[str] = Field(None, description="Only reports of this type")
    sort_by: Optional[str] = Field("created_at", description="Sort column")
    sort_order: Optional[str] = Field("DESC", description="ASC or DESC")


# 1. Listing and details
class ReportListItem(BaseModel):
    public_id: str = Field(..., description="Public unique identifier for the report (KSUID)")
    report_type: str
    description: str
    evidence_urls: Optional[List[str]] = None
    status: str
    admin_notes: Optional[str] = None
    reported_message_id: Optional[int] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    handled_at: Optional[datetime.datetime] = None
    reporter_public_id: Optional[str] = None
    reporter_username: Optional[str] = None
    reporter_first_name: Optional[str] = None
    reported_user_public_id: Optional[str] = None
    reported_username: Optional[str] = None
    reported_user_first_name: Optional[str] = None
    article_public_id: Optional[str] = None
    article_title: Optional[str] = None
    handler_username: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class PaginatedReportsResponse(BaseModel):
    reports: List[ReportListItem]
    total: int
    has_more: bool


class ReportDetail(ReportListItem):
    reporter_email: Optional[str] = None
    reported_user_email: Optional[str] = None
    article_description: Optional[str] = None
    article_price: Optional[float] = None
    handler_first_name: Optional[str] = None


class RelatedReport(BaseModel):
    public_id: str
    report_type: str
    status: str
    description: str
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class ReporterStats(BaseModel):
    total_reports: int
    resolved_reports: int
    dismissed_reports: int


class ReportDetailsResponse(BaseModel):
    report: ReportDetail
    related_reports: List[RelatedReport]
    reporter_stats: ReporterStats


# 2. Handling
class HandleReportRequest(BaseModel):
    action: Literal["investigating", "resolve", "dismiss"]
    admin_notes: Optional[str] = Field(None, max_length=2000)
    user_action: Literal["none", "warn", "suspend", "delete_content"] = "none"


class HandleReportResponse(BaseModel):
    message: str
    report: ReportListItem


# 3. Bulk handling
class BulkHandleReportsRequest(BaseModel):
    report_ids: List[str] = Field(..., min_length=1, description="Public IDs of the reports")
    action: Literal["resolve", "dismiss"]
    admin_notes: Optional[str] = Field(None, max_length=2000)


# 4. Statistics
class ReportBasicStats(BaseModel):
    total_reports: int
    pending_reports: int
    investigating_reports: int
    resolved_reports: int
    dismissed_reports: int


class ReportTypeCount(BaseModel):
    report_type: str
    count: int
    resolved_count: int


class TopReporter(BaseModel):
    username: Optional[str] = None
    first_name: Optional[str] = None
    report_count: int
    valid_reports: int


class MostReportedUser(BaseModel):
    username: Optional[str] = None
    first_name: Optional[str] = None
    report_count: int
    valid_reports_against: int


class ReportStatisticsResponse(BaseModel):
    basic_stats: ReportBasicStats
    type_distribution: List[ReportTypeCount]
    trends: List[DailyCount]
    top_reporters: List[TopReporter]
    most_reported: List[MostReportedUser]
