import threading
from datetime import datetime, timedelta, timezone
from leadcloser.candidates import generate_mock_candidates
from leadcloser.scoring import score_candidates
from leadcloser.store import LeadStore, month_start


def _scored(n=5):
    return score_candidates(generate_mock_candidates(n, seed=5), {"decision_maker": ["ceo"]})


def test_assessment_history():
    store = LeadStore()
    assert store.latest_assessment("u1") is None
    store.save_assessment("u1", {"industry": "finance"})
    latest = store.save_assessment("u1", {"industry": "retail"})
    assert store.latest_assessment("u1").id == latest.id
    assert store.latest_assessment("u2") is None


def test_leads_listed_by_score_and_scoped_to_user():
    store = LeadStore()
    for lead in _scored():
        store.save_lead("u1", lead)
    store.save_lead("u2", _scored(1)[0])
    leads = store.leads_for_user("u1")
    assert len(leads) == 5
    assert all(a.score >= b.score for a, b in zip(leads, leads[1:]))
    assert len(store.leads_for_user("u1", limit=2, offset=1)) == 2
    assert len(store.leads_for_user("u1", limit=None)) == 5
    assert store.get_lead("u2", leads[0].id) is None


def test_update_lead_status():
    store = LeadStore()
    lead = store.save_lead("u1", _scored(1)[0])
    assert lead.status == "new"
    updated = store.update_lead("u1", lead.id, status="contacted", notes="left a message")
    assert updated.status == "contacted"
    assert updated.notes == "left a message"
    assert updated.updated_at >= lead.updated_at
    assert store.leads_for_user("u1", status="contacted")[0].id == lead.id
    assert store.update_lead("u1", "missing", status="won") is None


def test_usage_counts_and_plans():
    store = LeadStore()
    for lead in _scored(3):
        store.save_lead("u1", lead)
    assert store.leads_created_since("u1", month_start()) == 3
    assert store.leads_created_since("u1", datetime.now(timezone.utc) + timedelta(days=1)) == 0
    assert store.get_subscription("u1").plan == "free"
    store.set_plan("u1", "business")
    assert store.get_subscription("u1").plan == "business"


def test_month_start():
    now = datetime(2025, 6, 17, 15, 30, tzinfo=timezone.utc)
    assert month_start(now) == datetime(2025, 6, 1, tzinfo=timezone.utc)


def test_save_within_quota_keeps_top_of_ranking():
    store = LeadStore()
    for lead in _scored(8):
        store.save_lead("u1", lead)
    ranked = _scored(5)
    kept = store.save_leads_within_quota("u1", ranked, limit=10, since=month_start())
    assert [l.name for l in kept] == [r.name for r in ranked[:2]]
    assert store.save_leads_within_quota("u1", ranked, limit=10, since=month_start()) == []
    assert store.leads_created_since("u1", month_start()) == 10


def test_concurrent_quota_saves_never_exceed_limit():
    store = LeadStore()
    ranked = _scored(5)
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        store.save_leads_within_quota("u1", ranked, limit=10, since=month_start())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert store.leads_created_since("u1", month_start()) == 10


def test_concurrent_updates_keep_both_fields():
    store = LeadStore()
    lead = store.save_lead("u1", _scored(1)[0])
    barrier = threading.Barrier(2)

    def set_status():
        barrier.wait()
        for _ in range(200):
            store.update_lead("u1", lead.id, status="meeting")

    def set_notes():
        barrier.wait()
        for _ in range(200):
            store.update_lead("u1", lead.id, notes="call back friday")

    threads = [threading.Thread(target=set_status), threading.Thread(target=set_notes)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    final = store.get_lead("u1", lead.id)
    assert final.status == "meeting"
    assert final.notes == "call back friday"
