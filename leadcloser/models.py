from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


CompanySize = Literal["solo", "micro", "small", "medium", "large", "enterprise"]
LeadStatus = Literal["new", "contacted", "meeting", "proposal", "won", "lost", "archived"]
Plan = Literal["free", "professional", "business"]

COMPANY_SIZES: List[str] = ["solo", "micro", "small", "medium", "large", "enterprise"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EngagementMetrics(CamelModel):
    post_engagements: int = Field(default=0, ge=0)
    content_created: int = Field(default=0, ge=0)
    group_activity: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    event_attendance: int = Field(default=0, ge=0)


class LeadCandidate(CamelModel):
    linkedin_id: Optional[str] = None
    name: str = Field(min_length=1)
    title: Optional[str] = None
    company: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[CompanySize] = None
    profile_url: Optional[str] = None
    connection_degree: Optional[int] = None
    mutual_connections: int = Field(default=0, ge=0)
    last_activity_date: Optional[datetime] = None
    profile_updated_recently: bool = False
    recent_job_change: bool = False
    interests: List[str] = Field(default_factory=list)
    mentioned_topics: List[str] = Field(default_factory=list)
    engagement_metrics: EngagementMetrics = Field(default_factory=EngagementMetrics)


class ScoreBreakdown(CamelModel):
    engagement_level: int = Field(ge=0, le=100)
    role_relevance: int = Field(ge=0, le=100)
    connection_proximity: int = Field(ge=0, le=100)
    activity_recency: int = Field(ge=0, le=100)
    content_alignment: float = Field(ge=0, le=100)


class ScoredLead(LeadCandidate):
    score: int = Field(ge=0, le=100)
    score_breakdown: ScoreBreakdown


class UserIdentity(CamelModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: Literal["user", "admin"] = "user"


class AssessmentAnswers(BaseModel):
    """Ideal client profile. Absent keys mean no preference."""

    model_config = ConfigDict(extra="ignore")

    industry: Optional[str] = None
    company_size: Optional[str] = None
    decision_maker: List[str] = Field(default_factory=list)
    pain_points: List[str] = Field(default_factory=list)
    budget: Optional[float] = None
    buying_cycle: Optional[str] = None
    geography: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    engagement_signals: List[str] = Field(default_factory=list)
    objections: List[str] = Field(default_factory=list)


class Assessment(CamelModel):
    id: str
    user_id: str
    answers: Dict[str, Any]
    completed: bool = True
    created_at: datetime


class Lead(ScoredLead):
    id: str
    user_id: str
    status: LeadStatus = "new"
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class LeadStatusUpdate(CamelModel):
    status: Optional[LeadStatus] = None
    notes: Optional[str] = None


class Subscription(CamelModel):
    user_id: str
    plan: Plan = "free"
    status: Literal["active", "canceled"] = "active"
    updated_at: Optional[datetime] = None


class SubscriptionOut(Subscription):
    lead_limit: int
    leads_used: int


class SubscriptionUpdate(CamelModel):
    plan: Plan


class ScoreRequest(CamelModel):
    candidate: LeadCandidate
    answers: Dict[str, Any] = Field(default_factory=dict)
    requester: Optional[UserIdentity] = None


class BulkScoreRequest(CamelModel):
    candidates: List[LeadCandidate]
    answers: Dict[str, Any] = Field(default_factory=dict)
    requester: Optional[UserIdentity] = None


class Summary(CamelModel):
    count: int
    avg_score: float
    top_score: int


class BulkScoreResponse(CamelModel):
    results: List[ScoredLead]
    summary: Summary


class GenerateLeadsResponse(CamelModel):
    scored: int
    kept: int
    leads: List[Lead]


class SettingsModel(BaseModel):
    plans: Dict[str, int]
    batch_size: int
