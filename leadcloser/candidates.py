import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from .models import COMPANY_SIZES, EngagementMetrics, LeadCandidate


INDUSTRIES = ["Technology", "Finance", "Healthcare", "Education", "Manufacturing", "Retail", "Marketing", "Consulting", "Real Estate", "Nonprofit"]
TITLES = ["CEO", "CTO", "CFO", "CMO", "COO", "VP of Sales", "Director of Marketing", "Product Manager", "Consultant", "Founder"]
COMPANIES = ["Acme Inc", "TechCorp", "Global Solutions", "Innovative Systems", "Strategic Partners", "NextGen Technologies", "Premier Services", "Elite Consulting", "Visionary Group", "Apex Solutions"]
INTERESTS = ["Innovation", "Leadership", "Marketing", "Productivity", "Finance", "Sustainability", "Industry News", "Professional Development", "Entrepreneurship"]
TOPICS = ["Time Management", "Cost Reduction", "Quality Improvement", "Growth Strategies", "Customer Retention", "Competitive Analysis", "Digital Transformation", "Talent Acquisition", "Regulatory Compliance"]
# None is out of network
DEGREES = [1, 2, 3, None]
MAX_ACTIVITY_AGE_DAYS = 200


def _profile_url(i: int) -> str:
    return f"https://linkedin.com/in/lead-candidate-{i + 1}"


def mock_candidate(i: int, rng: random.Random, now: datetime) -> LeadCandidate:
    last_activity = now - timedelta(days=rng.randint(0, MAX_ACTIVITY_AGE_DAYS), hours=rng.randint(0, 23))
    metrics = EngagementMetrics(
        post_engagements=rng.randint(0, 9),
        content_created=rng.randint(0, 4),
        group_activity=rng.randint(0, 4),
        comments=rng.randint(0, 9),
        event_attendance=rng.randint(0, 2),
    )
    return LeadCandidate(
        linkedin_id=f"linkedin-{i}",
        name=f"Lead Candidate {i + 1}",
        title=rng.choice(TITLES),
        company=rng.choice(COMPANIES),
        industry=rng.choice(INDUSTRIES),
        company_size=COMPANY_SIZES[i % len(COMPANY_SIZES)],
        profile_url=_profile_url(i),
        connection_degree=DEGREES[i % len(DEGREES)],
        mutual_connections=rng.randint(0, 19),
        last_activity_date=last_activity,
        profile_updated_recently=rng.random() > 0.5,
        recent_job_change=rng.random() > 0.7,
        interests=rng.sample(INTERESTS, rng.randint(1, 5)),
        mentioned_topics=rng.sample(TOPICS, rng.randint(1, 3)),
        engagement_metrics=metrics,
    )


def generate_mock_candidates(count: int, answers: Optional[Dict[str, Any]] = None, seed: Optional[int] = None, now: Optional[datetime] = None) -> List[LeadCandidate]:
    """Synthetic stand-in for a real profile source.

    Company sizes and connection degrees cycle so any batch of twelve or
    more covers every band. ``answers`` is accepted so a real source can
    filter on the profile; the mock ignores it.
    """
    rng = random.Random(seed)
    now = now or datetime.now(timezone.utc)
    return [mock_candidate(i, rng, now) for i in range(max(0, count))]
