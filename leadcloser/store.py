import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from .models import Assessment, Lead, ScoredLead, Subscription


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _to_lead(user_id: str, scored: ScoredLead, status: str, now: datetime) -> Lead:
    data = scored.model_dump()
    data.update({"id": _new_id(), "user_id": user_id, "status": status, "created_at": now, "updated_at": now})
    return Lead.model_validate(data)


class LeadStore:
    """In-memory assessments, leads and subscriptions keyed by user id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._assessments: Dict[str, List[Assessment]] = {}
        self._leads: Dict[str, Lead] = {}
        self._subscriptions: Dict[str, Subscription] = {}

    def save_assessment(self, user_id: str, answers: Dict[str, Any], completed: bool = True) -> Assessment:
        assessment = Assessment(id=_new_id(), user_id=user_id, answers=answers, completed=completed, created_at=_now())
        with self._lock:
            self._assessments.setdefault(user_id, []).append(assessment)
        return assessment

    def latest_assessment(self, user_id: str) -> Optional[Assessment]:
        with self._lock:
            history = self._assessments.get(user_id) or []
            return history[-1] if history else None

    def save_lead(self, user_id: str, scored: ScoredLead, status: str = "new") -> Lead:
        lead = _to_lead(user_id, scored, status, _now())
        with self._lock:
            self._leads[lead.id] = lead
        return lead

    def save_leads_within_quota(self, user_id: str, ranked: Iterable[ScoredLead], limit: int, since: datetime) -> List[Lead]:
        """Save the leading entries of ``ranked`` that still fit under ``limit``.

        Usage is counted and the leads stored under one lock, so concurrent
        callers cannot overshoot the quota together.
        """
        now = _now()
        prepared = [_to_lead(user_id, scored, "new", now) for scored in ranked]
        with self._lock:
            used = sum(1 for l in self._leads.values() if l.user_id == user_id and l.created_at >= since)
            kept = prepared[:max(0, limit - used)]
            for lead in kept:
                self._leads[lead.id] = lead
        return kept

    def get_lead(self, user_id: str, lead_id: str) -> Optional[Lead]:
        with self._lock:
            lead = self._leads.get(lead_id)
        if lead is None or lead.user_id != user_id:
            return None
        return lead

    def update_lead(self, user_id: str, lead_id: str, status: Optional[str] = None, notes: Optional[str] = None) -> Optional[Lead]:
        changes: Dict[str, Any] = {"updated_at": _now()}
        if status is not None:
            changes["status"] = status
        if notes is not None:
            changes["notes"] = notes
        with self._lock:
            lead = self._leads.get(lead_id)
            if lead is None or lead.user_id != user_id:
                return None
            updated = lead.model_copy(update=changes)
            self._leads[lead_id] = updated
        return updated

    def leads_for_user(self, user_id: str, limit: Optional[int] = 20, offset: int = 0, status: Optional[str] = None) -> List[Lead]:
        with self._lock:
            leads = [l for l in self._leads.values() if l.user_id == user_id]
        if status:
            leads = [l for l in leads if l.status == status]
        leads.sort(key=lambda l: l.score, reverse=True)
        if limit is None:
            return leads[offset:]
        return leads[offset:offset + limit]

    def leads_created_since(self, user_id: str, since: datetime) -> int:
        with self._lock:
            return sum(1 for l in self._leads.values() if l.user_id == user_id and l.created_at >= since)

    def get_subscription(self, user_id: str) -> Subscription:
        with self._lock:
            sub = self._subscriptions.get(user_id)
        return sub or Subscription(user_id=user_id)

    def set_plan(self, user_id: str, plan: str) -> Subscription:
        sub = Subscription(user_id=user_id, plan=plan, status="active", updated_at=_now())
        with self._lock:
            self._subscriptions[user_id] = sub
        return sub


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or _now()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
