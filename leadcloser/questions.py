from typing import Any, Dict, List, Optional


def _opts(*values: str) -> List[str]:
    return list(values)


QUESTIONS: List[Dict[str, Any]] = [
    {
        "id": "industry",
        "type": "select",
        "question": "What industry does your ideal client work in?",
        "options": _opts("technology", "finance", "healthcare", "education", "manufacturing", "retail", "marketing", "consulting", "real_estate", "nonprofit", "other"),
    },
    {
        "id": "company_size",
        "type": "radio",
        "question": "What size company does your ideal client work for?",
        "options": _opts("solo", "micro", "small", "medium", "large", "enterprise"),
    },
    {
        "id": "decision_maker",
        "type": "multiselect",
        "question": "What job titles do your ideal clients typically have?",
        "options": _opts("ceo", "cto", "cfo", "cmo", "coo", "vp", "director", "manager", "consultant", "other"),
    },
    {
        "id": "pain_points",
        "type": "multiselect",
        "question": "What are the top pain points your solution addresses?",
        "options": _opts("time", "cost", "quality", "growth", "retention", "competition", "technology", "talent", "compliance", "other"),
    },
    {
        "id": "budget",
        "type": "range",
        "question": "What is the typical budget range for your services?",
        "min": 1,
        "max": 5,
    },
    {
        "id": "buying_cycle",
        "type": "radio",
        "question": "How long is your typical sales cycle?",
        "options": _opts("immediate", "short", "medium", "long", "very_long"),
    },
    {
        "id": "geography",
        "type": "select",
        "question": "Where are your ideal clients located?",
        "options": _opts("local", "national", "north_america", "europe", "asia_pacific", "global"),
    },
    {
        "id": "interests",
        "type": "multiselect",
        "question": "What topics or interests are relevant to your ideal clients?",
        "options": _opts("innovation", "leadership", "marketing", "productivity", "finance", "sustainability", "industry_news", "professional_development", "entrepreneurship", "other"),
    },
    {
        "id": "engagement_signals",
        "type": "multiselect",
        "question": "What engagement signals indicate a high-quality lead?",
        "options": _opts("post_engagement", "content_creation", "group_activity", "job_changes", "company_growth", "connection_network", "event_attendance", "profile_updates", "comment_quality", "other"),
    },
    {
        "id": "objections",
        "type": "multiselect",
        "question": "What are the common objections you face from prospects?",
        "options": _opts("price", "timing", "need", "competition", "approval", "risk", "roi", "implementation", "trust", "other"),
    },
]

QUESTION_KEYS: List[str] = [q["id"] for q in QUESTIONS]


def get_question(key: str) -> Optional[Dict[str, Any]]:
    for q in QUESTIONS:
        if q["id"] == key:
            return q
    return None


def _default_for(q: Dict[str, Any]) -> Any:
    if q["type"] == "multiselect":
        return []
    if q["type"] == "range":
        return (q["min"] + q["max"]) / 2
    return ""


def default_answers() -> Dict[str, Any]:
    return {q["id"]: _default_for(q) for q in QUESTIONS}


def _normalize_one(q: Dict[str, Any], value: Any) -> Any:
    if q["type"] == "multiselect":
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []
        out: List[str] = []
        for v in value:
            if isinstance(v, str) and v.strip() and v.strip().lower() not in out:
                out.append(v.strip().lower())
        return out
    if q["type"] == "range":
        if isinstance(value, bool):
            return _default_for(q)
        try:
            num = float(value)
        except (TypeError, ValueError):
            return _default_for(q)
        return max(float(q["min"]), min(float(q["max"]), num))
    if isinstance(value, str):
        return value.strip().lower()
    return ""


def normalize_answers(raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Keep known question keys and coerce each value to its question's shape.

    Keys the user skipped are left out, so they read as no preference.
    """
    if not raw:
        return {}
    answers: Dict[str, Any] = {}
    for q in QUESTIONS:
        if q["id"] in raw:
            answers[q["id"]] = _normalize_one(q, raw[q["id"]])
    return answers
