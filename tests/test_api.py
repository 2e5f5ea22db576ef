from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from leadcloser.main import app


client = TestClient(app)
USER = {"X-User-Id": "user_1", "X-User-Email": "demo@example.com", "X-User-Name": "Demo User"}
ANSWERS = {"industry": "technology", "company_size": "small", "decision_maker": ["ceo", "vp"], "interests": ["innovation"], "pain_points": ["cost"]}


def _candidate(**kw):
    data = {
        "name": "Alex Doe",
        "title": "Chief Executive Officer",
        "industry": "Technology",
        "companySize": "small",
        "connectionDegree": 1,
        "mutualConnections": 15,
        "lastActivityDate": (datetime.now(timezone.utc) - timedelta(days=3)).isoformat(),
        "profileUpdatedRecently": True,
        "recentJobChange": True,
        "interests": ["Innovation"],
        "mentionedTopics": ["Cost Reduction"],
        "engagementMetrics": {"postEngagements": 6, "contentCreated": 4, "groupActivity": 4, "comments": 6, "eventAttendance": 1},
    }
    data.update(kw)
    return data


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert r.headers.get("X-Request-ID")


def test_request_id_propagated():
    r = client.get("/health", headers={"X-Request-ID": "abc"})
    assert r.headers["X-Request-ID"] == "abc"


def test_score_endpoint():
    r = client.post("/score", json={"candidate": _candidate(), "answers": ANSWERS})
    assert r.status_code == 200
    data = r.json()
    assert data["score"] == 100
    assert data["scoreBreakdown"] == {
        "engagementLevel": 100,
        "roleRelevance": 100,
        "connectionProximity": 100,
        "activityRecency": 100,
        "contentAlignment": 100,
    }
    assert data["name"] == "Alex Doe"


def test_score_endpoint_rejects_invalid_candidate():
    r = client.post("/score", json={"candidate": {"title": "CEO"}, "answers": {}})
    assert r.status_code == 422
    r = client.post("/score", json={"candidate": _candidate(mutualConnections=-2)})
    assert r.status_code == 422


def test_bulk_endpoint_sorted():
    weak = _candidate(name="Weak", title=None, connectionDegree=None, mutualConnections=0, lastActivityDate=None,
                      profileUpdatedRecently=False, recentJobChange=False, interests=[], mentionedTopics=[], engagementMetrics={})
    payload = {"candidates": [weak, _candidate(), _candidate(name="Twin")], "answers": ANSWERS}
    r = client.post("/score/bulk", json=payload)
    assert r.status_code == 200
    assert [x["name"] for x in r.json()["results"]] == ["Weak", "Alex Doe", "Twin"]
    r = client.post("/score/bulk?sort=true", json=payload)
    data = r.json()
    assert [x["name"] for x in data["results"]] == ["Alex Doe", "Twin", "Weak"]
    assert data["summary"]["count"] == 3
    assert data["summary"]["topScore"] == 100


def test_questions():
    r = client.get("/assessment/questions")
    assert r.status_code == 200
    body = r.json()
    assert len(body["questions"]) == 10
    assert body["defaults"]["interests"] == []


def test_assessment_requires_user():
    assert client.get("/assessment").status_code == 401
    assert client.post("/assessment", json=ANSWERS).status_code == 401


def test_assessment_roundtrip():
    assert client.get("/assessment", headers=USER).status_code == 404
    r = client.post("/assessment", json={"industry": "Technology", "decision_maker": "CEO", "bogus": 1}, headers=USER)
    assert r.status_code == 200
    assert r.json()["answers"] == {"industry": "technology", "decision_maker": ["ceo"]}
    r = client.get("/assessment", headers=USER)
    assert r.json()["completed"] is True
    assert r.json()["userId"] == "user_1"


def test_generate_requires_assessment():
    r = client.post("/leads/generate", headers=USER)
    assert r.status_code == 400


def test_generate_leads_respects_quota():
    client.post("/assessment", json=ANSWERS, headers=USER)
    r = client.post("/leads/generate?seed=1", headers=USER)
    assert r.status_code == 200
    data = r.json()
    assert data["scored"] == 20
    assert data["kept"] == 10
    scores = [l["score"] for l in data["leads"]]
    assert scores == sorted(scores, reverse=True)
    assert all(l["status"] == "new" and l["userId"] == "user_1" for l in data["leads"])

    r = client.post("/leads/generate?seed=2", headers=USER)
    assert r.status_code == 403

    r = client.get("/subscription", headers=USER)
    assert r.json()["leadsUsed"] == 10
    assert r.json()["leadLimit"] == 10

    r = client.put("/subscription", json={"plan": "professional"}, headers=USER)
    assert r.status_code == 200
    assert r.json()["leadLimit"] == 50
    r = client.post("/leads/generate?seed=2", headers=USER)
    assert r.json()["kept"] == 20


def test_list_update_and_export_leads():
    client.post("/assessment", json=ANSWERS, headers=USER)
    client.post("/leads/generate?seed=4", headers=USER)
    r = client.get("/leads?limit=5", headers=USER)
    leads = r.json()
    assert len(leads) == 5
    assert client.get("/leads", headers={"X-User-Id": "someone_else"}).json() == []

    lead_id = leads[0]["id"]
    r = client.patch(f"/leads/{lead_id}", json={"status": "contacted", "notes": "intro sent"}, headers=USER)
    assert r.status_code == 200
    assert r.json()["status"] == "contacted"
    assert client.get("/leads?status=contacted", headers=USER).json()[0]["id"] == lead_id
    assert client.patch("/leads/nope", json={"status": "won"}, headers=USER).status_code == 404
    assert client.patch(f"/leads/{lead_id}", json={"status": "bogus"}, headers=USER).status_code == 422

    r = client.get("/leads/export", headers=USER)
    assert r.status_code == 200
    assert r.headers.get("content-type").startswith("text/csv")
    assert len(r.text.strip().splitlines()) == 11


def test_subscription_invalid_plan():
    r = client.put("/subscription", json={"plan": "platinum"}, headers=USER)
    assert r.status_code == 422
