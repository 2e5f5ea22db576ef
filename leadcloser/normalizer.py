import re
from typing import Any, Dict, List, Optional
import pandas as pd
from pydantic import ValidationError
from .models import LeadCandidate


CAMEL_REGEX = re.compile(r"(?<!^)(?=[A-Z])")
LIST_SEPARATOR = ";"
TRUE_VALUES = {"true", "yes", "y", "1"}
FALSE_VALUES = {"false", "no", "n", "0"}

STRING_FIELDS = ("linkedin_id", "name", "title", "company", "industry", "profile_url")
INT_FIELDS = ("connection_degree", "mutual_connections")
BOOL_FIELDS = ("profile_updated_recently", "recent_job_change")
LIST_FIELDS = ("interests", "mentioned_topics")
METRIC_FIELDS = ("post_engagements", "content_created", "group_activity", "comments", "event_attendance")


class CandidateValidationError(ValueError):
    """A raw candidate row could not be turned into a LeadCandidate."""

    def __init__(self, row: Optional[int], errors: List[Dict[str, Any]]):
        self.row = row
        self.errors = errors
        where = f"row {row}" if row is not None else "candidate"
        super().__init__(f"invalid {where}: {errors}")


def snake_key(key: str) -> str:
    s = CAMEL_REGEX.sub("_", key.strip().replace(" ", "_")).lower()
    return re.sub(r"_+", "_", s)


def _py(value: Any) -> Any:
    # numpy scalars from DataFrame rows
    if hasattr(value, "item") and not isinstance(value, (str, bytes, list, tuple, dict)):
        return value.item()
    return value


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return isinstance(value, str) and not value.strip()


def _clean_str(value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    s = str(value).strip()
    return s if s else None


def _clean_int(value: Any) -> Any:
    if _is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return value


def _clean_bool(value: Any) -> Any:
    if _is_blank(value):
        return None
    if isinstance(value, str):
        v = value.strip().lower()
        if v in TRUE_VALUES:
            return True
        if v in FALSE_VALUES:
            return False
    return value


def split_list(value: Any) -> List[str]:
    if _is_blank(value):
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if not _is_blank(v)]
    return [p.strip() for p in str(value).split(LIST_SEPARATOR) if p.strip()]


def parse_datetime(value: Any) -> Any:
    if _is_blank(value):
        return None
    try:
        return pd.to_datetime(value, errors="raise", utc=True).to_pydatetime()
    except (ValueError, TypeError):
        # let model validation report it
        return value


def candidate_from_row(row: Dict[str, Any], index: Optional[int] = None) -> LeadCandidate:
    """Build a LeadCandidate from a flat or nested raw mapping.

    Column names may be camelCase or snake_case. Engagement counters may be
    flat columns or a nested ``engagementMetrics`` mapping.
    """
    flat = {snake_key(str(k)): _py(v) for k, v in row.items()}
    nested = flat.pop("engagement_metrics", None)
    if isinstance(nested, dict):
        for k, v in nested.items():
            flat.setdefault(snake_key(str(k)), v)
    payload: Dict[str, Any] = {}
    for key in STRING_FIELDS:
        payload[key] = _clean_str(flat.get(key))
    for key in INT_FIELDS:
        payload[key] = _clean_int(flat.get(key))
    for key in BOOL_FIELDS:
        payload[key] = _clean_bool(flat.get(key))
    for key in LIST_FIELDS:
        payload[key] = split_list(flat.get(key))
    size = _clean_str(flat.get("company_size"))
    payload["company_size"] = size.lower() if size else None
    payload["last_activity_date"] = parse_datetime(flat.get("last_activity_date"))
    metrics = {k: _clean_int(flat.get(k)) for k in METRIC_FIELDS}
    payload["engagement_metrics"] = {k: v for k, v in metrics.items() if v is not None}
    payload = {k: v for k, v in payload.items() if v is not None}
    try:
        return LeadCandidate.model_validate(payload)
    except ValidationError as e:
        errors = [{"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]} for err in e.errors()]
        raise CandidateValidationError(index, errors) from e


def candidates_from_frame(df: pd.DataFrame) -> List[LeadCandidate]:
    candidates: List[LeadCandidate] = []
    for i, (_, row) in enumerate(df.iterrows(), start=1):
        candidates.append(candidate_from_row(row.to_dict(), index=i))
    return candidates


def candidate_to_row(candidate: LeadCandidate) -> Dict[str, Any]:
    data = candidate.model_dump(by_alias=True, exclude={"engagement_metrics"})
    data.update(candidate.engagement_metrics.model_dump(by_alias=True))
    data.update(data.pop("scoreBreakdown", None) or {})
    for key in ("interests", "mentionedTopics"):
        data[key] = f"{LIST_SEPARATOR} ".join(data.get(key) or [])
    if candidate.last_activity_date is not None:
        data["lastActivityDate"] = candidate.last_activity_date.isoformat()
    return data
