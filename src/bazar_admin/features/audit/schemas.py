from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
import datetime


class AuditContext(BaseModel):
    """Client details recorded alongside every admin action."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AdminLogQuery(BaseModel):
    admin_id: Optional[str] = Field(None, description="Public ID of the admin who performed the action")
    action: Optional[str] = Field(None, description="Substring of the action name")
    start_date: Optional[datetime.date] = Field(None, description="First day to include (YYYY-MM-DD)")
    end_date: Optional[datetime.date] = Field(None, description="Last day to include (YYYY-MM-DD)")

    @field_validator("admin_id", "action", "start_date", "end_date", mode="before")
    @classmethod
    def blank_filter_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class AdminLogEntry(BaseModel):
    public_id: str
    action: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    description: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime.datetime
    admin_public_id: Optional[str] = None
    admin_username: Optional[str] = None
    admin_first_name: Optional[str] = None
    admin_last_name: Optional[str] = None
    admin_role: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class ActiveAdmin(BaseModel):
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    action_count: int


class ActionCount(BaseModel):
    action: str
    count: int


class HourlyCount(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    count: int


class ActivitySummary(BaseModel):
    active_admins: List[ActiveAdmin]
    common_actions: List[ActionCount]
    hourly_activity: List[HourlyCount]


class AdminLogListResponse(BaseModel):
    logs: List[AdminLogEntry]
    total: int
    has_more: bool
    summary: ActivitySummary


class AuditTrailResponse(BaseModel):
    audit_trail: List[AdminLogEntry]
    target_type: str
    target_id: str


class SecurityLogQuery(BaseModel):
    start_date: Optional[datetime.date] = Field(None, description="First day to include, defaults to 7 days ago")
    end_date: Optional[datetime.date] = Field(None, description="Last day to include, defaults to today")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def blank_date_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SecurityEvent(BaseModel):
    event_type: str  # failed_login or multiple_failed_logins
    event_description: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime.datetime


class SecurityMetrics(BaseModel):
    failed_logins_24h: int
    failed_logins_7d: int
    unique_ips_24h: int
    suspicious_activity_count: int


class SecurityLogResponse(BaseModel):
    events: List[SecurityEvent]
    total: int
    has_more: bool
    metrics: SecurityMetrics
