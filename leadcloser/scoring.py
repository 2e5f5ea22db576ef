from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from pydantic import BaseModel
from .models import AssessmentAnswers, LeadCandidate, ScoreBreakdown, ScoredLead, UserIdentity


WEIGHTS: Dict[str, float] = {
    "engagement_level": 0.30,
    "role_relevance": 0.25,
    "connection_proximity": 0.20,
    "activity_recency": 0.15,
    "content_alignment": 0.10,
}

TITLE_SYNONYMS: Dict[str, List[str]] = {
    "ceo": ["chief executive", "founder", "owner"],
    "cto": ["chief technical", "technical director"],
    "cfo": ["chief financial", "finance director"],
    "cmo": ["chief marketing", "marketing director"],
    "coo": ["chief operating", "operations director"],
    "vp": ["vice president", "vp", "senior vice"],
    "director": ["director", "head of"],
    "manager": ["manager", "lead"],
    "consultant": ["consultant", "specialist"],
}

RECENCY_BUCKETS = [(7, 100), (30, 75), (90, 50), (180, 25)]
INACTIVE_POINTS = 10

Answers = Union[AssessmentAnswers, Mapping[str, Any]]


def _clamp(value: int) -> int:
    return max(0, min(100, int(value)))


def _clamp_real(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip().lower()
    return ""


def _texts(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [v.strip().lower() for v in value if isinstance(v, str) and v.strip()]


def _as_mapping(answers: Optional[Answers]) -> Mapping[str, Any]:
    if answers is None:
        return {}
    if isinstance(answers, BaseModel):
        return answers.model_dump()
    if isinstance(answers, Mapping):
        return answers
    return {}


def engagement_score(candidate: LeadCandidate) -> int:
    m = candidate.engagement_metrics
    score = 0
    if m.post_engagements > 5:
        score += 20
    elif m.post_engagements > 0:
        score += 10
    if m.content_created > 3:
        score += 25
    elif m.content_created > 0:
        score += 15
    if m.group_activity > 3:
        score += 20
    elif m.group_activity > 0:
        score += 10
    if m.comments > 5:
        score += 20
    elif m.comments > 0:
        score += 10
    if m.event_attendance > 0:
        score += 15
    return _clamp(score)


def _title_matches(code: str, title: str) -> bool:
    if code in title:
        return True
    return any(s in title for s in TITLE_SYNONYMS.get(code, []))


def role_relevance_score(candidate: LeadCandidate, answers: Mapping[str, Any]) -> int:
    score = 0
    codes = _texts(answers.get("decision_maker"))
    title = (candidate.title or "").lower()
    if codes and title:
        if any(_title_matches(code, title) for code in codes):
            score += 50
        elif any(code[:3] in title for code in codes):
            score += 25
    industry = _text(answers.get("industry"))
    if industry and candidate.industry and candidate.industry.lower() == industry:
        score += 30
    size = _text(answers.get("company_size"))
    if size and candidate.company_size and candidate.company_size == size:
        score += 20
    return _clamp(score)


def connection_proximity_score(candidate: LeadCandidate, requester: Optional[UserIdentity] = None) -> int:
    # requester is reserved for network personalization
    score = {1: 70, 2: 50, 3: 30}.get(candidate.connection_degree, 10)
    mutual = candidate.mutual_connections
    if mutual > 10:
        score += 30
    elif mutual > 5:
        score += 20
    elif mutual > 0:
        score += 10
    return _clamp(score)


def days_since(moment: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    if moment is None:
        return None
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int((now - moment).total_seconds() // 86400)


def activity_recency_score(candidate: LeadCandidate, now: Optional[datetime] = None) -> int:
    days = days_since(candidate.last_activity_date, now)
    score = INACTIVE_POINTS
    if days is not None:
        for limit, points in RECENCY_BUCKETS:
            if days < limit:
                score = points
                break
    if candidate.profile_updated_recently:
        score += 20
    if candidate.recent_job_change:
        score += 30
    return _clamp(score)


def content_alignment_score(candidate: LeadCandidate, answers: Mapping[str, Any]) -> float:
    # the interest percentage stays fractional until the weighted total is rounded
    score = 0.0
    targets = _texts(answers.get("interests"))
    mine = [i.lower() for i in candidate.interests]
    if targets:
        matched = sum(1 for t in targets if any(t in i for i in mine))
        score += min(80.0, matched * 100 / len(targets))
    topics = [t.lower() for t in candidate.mentioned_topics]
    for pain in _texts(answers.get("pain_points")):
        if any(pain in t for t in topics):
            score += 20
    return _clamp_real(score)


def combine(breakdown: ScoreBreakdown) -> int:
    values = breakdown.model_dump()
    total = sum(Decimal(str(w)) * Decimal(str(values[k])) for k, w in WEIGHTS.items())
    return _clamp(int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP)))


def score_breakdown(candidate: LeadCandidate, answers: Optional[Answers] = None, requester: Optional[UserIdentity] = None, now: Optional[datetime] = None) -> ScoreBreakdown:
    a = _as_mapping(answers)
    return ScoreBreakdown(
        engagement_level=engagement_score(candidate),
        role_relevance=role_relevance_score(candidate, a),
        connection_proximity=connection_proximity_score(candidate, requester),
        activity_recency=activity_recency_score(candidate, now),
        content_alignment=content_alignment_score(candidate, a),
    )


def score_candidate(candidate: LeadCandidate, answers: Optional[Answers] = None, requester: Optional[UserIdentity] = None, now: Optional[datetime] = None) -> ScoredLead:
    """Score one candidate against an ideal client profile.

    Pure and deterministic for a fixed ``now``. Missing candidate fields and
    absent or malformed answers contribute zero rather than raising.
    """
    breakdown = score_breakdown(candidate, answers, requester, now)
    data = candidate.model_dump()
    data["score"] = combine(breakdown)
    data["score_breakdown"] = breakdown
    return ScoredLead.model_validate(data)


def score_candidates(candidates: Iterable[LeadCandidate], answers: Optional[Answers] = None, requester: Optional[UserIdentity] = None, now: Optional[datetime] = None) -> List[ScoredLead]:
    now = now or datetime.now(timezone.utc)
    a = _as_mapping(answers)
    return [score_candidate(c, a, requester, now) for c in candidates]


def rank_leads(leads: Iterable[ScoredLead]) -> List[ScoredLead]:
    return sorted(leads, key=lambda lead: lead.score, reverse=True)
