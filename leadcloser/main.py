import io
import json
import logging
import time
from typing import Any, Dict, List, Optional
import pandas as pd
from fastapi import Body, FastAPI, File, Form, HTTPException, Request, Response, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from .candidates import generate_mock_candidates
from .config import lead_limit, load_settings, save_settings
from .models import (
    Assessment,
    BulkScoreRequest,
    BulkScoreResponse,
    GenerateLeadsResponse,
    Lead,
    LeadCandidate,
    LeadStatusUpdate,
    ScoredLead,
    ScoreRequest,
    SubscriptionOut,
    SubscriptionUpdate,
    Summary,
    UserIdentity,
)
from .normalizer import CandidateValidationError, candidate_to_row, candidates_from_frame
from .questions import QUESTIONS, default_answers, normalize_answers
from .scoring import rank_leads, score_candidate, score_candidates
from .store import LeadStore, month_start


app = FastAPI(title="LeadCloser Lead Scoring API")
app.state.store = LeadStore()


logger = logging.getLogger("leadcloser")
logging.basicConfig(level=logging.INFO, format="%(message)s")


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(int(time.time() * 1000))
    start = time.time()
    status = 500
    try:
        response: Response = await call_next(request)
        status = response.status_code
    finally:
        duration_ms = int((time.time() - start) * 1000)
        logger.info(json.dumps({
            "request_id": rid,
            "endpoint": request.url.path,
            "method": request.method,
            "status": status,
            "latency_ms": duration_ms,
        }))
    response.headers["X-Request-ID"] = rid
    return response


@app.exception_handler(CandidateValidationError)
async def candidate_validation_handler(request: Request, exc: CandidateValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": {"row": exc.row, "errors": exc.errors}})


def get_store(request: Request) -> LeadStore:
    return request.app.state.store


def current_user(request: Request) -> UserIdentity:
    user_id = request.headers.get("X-User-Id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return UserIdentity(
        id=user_id,
        email=request.headers.get("X-User-Email"),
        name=request.headers.get("X-User-Name"),
    )


@app.get("/health")
def health() -> Dict[str, bool]:
    return {"ok": True}


@app.get("/")
def root() -> HTMLResponse:
    html = """
    <!doctype html>
    <html>
    <head>
      <meta charset=\"utf-8\"/>
      <title>LeadCloser</title>
      <style>body{font-family:system-ui,Arial;margin:40px}form{margin-bottom:20px}label{display:block;margin:8px 0}input,textarea{padding:8px}button{padding:8px 12px} .hint{color:#666;font-size:12px}</style>
    </head>
    <body>
      <h1>Lead Scorer</h1>
      <form enctype=\"multipart/form-data\" method=\"post\" action=\"/ui/score\">
        <label>Candidates CSV <input type=\"file\" name=\"file\" accept=\".csv\" required/></label>
        <label>Ideal client profile (JSON) <textarea name=\"answers\" rows=\"6\" cols=\"60\">{}</textarea></label>
        <div class=\"hint\">Expected columns: name, title, company, industry, companySize, connectionDegree, mutualConnections, lastActivityDate, interests, mentionedTopics, postEngagements, contentCreated, groupActivity, comments, eventAttendance</div>
        <button type=\"submit\">Upload & Rank</button>
      </form>
      <p>Or use the interactive API docs at <a href=\"/docs\">/docs</a>.</p>
    </body>
    </html>
    """
    return HTMLResponse(html)


@app.get("/config/rules")
def get_rules() -> Dict[str, Any]:
    return load_settings()


@app.put("/config/rules")
def put_rules(body: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    try:
        return save_settings(body)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/assessment/questions")
def get_questions() -> Dict[str, Any]:
    return {"questions": QUESTIONS, "defaults": default_answers()}


@app.get("/assessment", response_model=Assessment)
def get_assessment(request: Request) -> Assessment:
    user, store = current_user(request), get_store(request)
    assessment = store.latest_assessment(user.id)
    if assessment is None:
        raise HTTPException(status_code=404, detail="No assessment found")
    return assessment


@app.post("/assessment", response_model=Assessment)
def submit_assessment(request: Request, answers: Dict[str, Any] = Body(...)) -> Assessment:
    user, store = current_user(request), get_store(request)
    return store.save_assessment(user.id, normalize_answers(answers), completed=True)


def summarize(results: List[ScoredLead]) -> Summary:
    count = len(results)
    avg_score = round(sum(r.score for r in results) / count, 2) if count else 0.0
    top_score = max((r.score for r in results), default=0)
    return Summary(count=count, avg_score=avg_score, top_score=top_score)


@app.post("/score", response_model=ScoredLead)
def score_endpoint(req: ScoreRequest) -> ScoredLead:
    return score_candidate(req.candidate, normalize_answers(req.answers), req.requester)


@app.post("/score/bulk", response_model=BulkScoreResponse)
def bulk_score_endpoint(req: BulkScoreRequest, sort: bool = False) -> BulkScoreResponse:
    results = score_candidates(req.candidates, normalize_answers(req.answers), req.requester)
    if sort:
        results = rank_leads(results)
    return BulkScoreResponse(results=results, summary=summarize(results))


def _parse_answers_field(answers: Optional[str]) -> Dict[str, Any]:
    if not answers:
        return {}
    try:
        data = json.loads(answers)
    except ValueError:
        raise HTTPException(status_code=400, detail="answers must be a JSON object")
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="answers must be a JSON object")
    return normalize_answers(data)


async def _read_candidates_csv(file: UploadFile) -> List[LeadCandidate]:
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Expected a CSV file")
    content = await file.read()
    try:
        df = pd.read_csv(io.BytesIO(content))
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid CSV")
    return candidates_from_frame(df)


@app.post("/score/csv", response_model=BulkScoreResponse)
async def score_csv(file: UploadFile = File(...), answers: Optional[str] = Form(None), sort: bool = True) -> BulkScoreResponse:
    candidates = await _read_candidates_csv(file)
    results = score_candidates(candidates, _parse_answers_field(answers))
    if sort:
        results = rank_leads(results)
    return BulkScoreResponse(results=results, summary=summarize(results))


def _csv_response(rows: List[Dict[str, Any]], prefix: str) -> StreamingResponse:
    df = pd.DataFrame(rows)
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    buf.seek(0)
    headers = {"Content-Disposition": f"attachment; filename={prefix}_{int(time.time())}.csv"}
    return StreamingResponse(iter([buf.getvalue()]), media_type="text/csv", headers=headers)


@app.post("/ui/score")
async def ui_score(file: UploadFile = File(...), answers: Optional[str] = Form(None)) -> StreamingResponse:
    res = await score_csv(file=file, answers=answers, sort=True)
    return _csv_response([candidate_to_row(r) for r in res.results], "ranked")


def _usage(user_id: str, store: LeadStore) -> SubscriptionOut:
    sub = store.get_subscription(user_id)
    used = store.leads_created_since(user_id, month_start())
    return SubscriptionOut(**sub.model_dump(), lead_limit=lead_limit(sub.plan), leads_used=used)


@app.post("/leads/generate", response_model=GenerateLeadsResponse)
def generate_leads(request: Request, seed: Optional[int] = None) -> GenerateLeadsResponse:
    user, store = current_user(request), get_store(request)
    assessment = store.latest_assessment(user.id)
    if assessment is None or not assessment.completed:
        raise HTTPException(status_code=400, detail="Please complete the assessment first")
    usage = _usage(user.id, store)
    remaining = usage.lead_limit - usage.leads_used
    if remaining <= 0:
        raise HTTPException(status_code=403, detail=f"Monthly lead limit of {usage.lead_limit} reached for the {usage.plan} plan")
    batch_size = int(load_settings()["batch_size"])
    candidates = generate_mock_candidates(batch_size, assessment.answers, seed=seed)
    ranked = rank_leads(score_candidates(candidates, assessment.answers, user))
    kept = store.save_leads_within_quota(user.id, ranked, usage.lead_limit, month_start())
    if not kept:
        raise HTTPException(status_code=403, detail=f"Monthly lead limit of {usage.lead_limit} reached for the {usage.plan} plan")
    logger.info(json.dumps({
        "event": "leads_generated",
        "user_id": user.id,
        "scored": len(ranked),
        "kept": len(kept),
        "plan": usage.plan,
    }))
    return GenerateLeadsResponse(scored=len(ranked), kept=len(kept), leads=kept)


@app.get("/leads", response_model=List[Lead])
def list_leads(request: Request, limit: int = 20, offset: int = 0, status: Optional[str] = None) -> List[Lead]:
    user, store = current_user(request), get_store(request)
    return store.leads_for_user(user.id, limit=max(0, limit), offset=max(0, offset), status=status)


@app.get("/leads/export")
def export_leads(request: Request) -> StreamingResponse:
    user, store = current_user(request), get_store(request)
    leads = store.leads_for_user(user.id, limit=None)
    return _csv_response([candidate_to_row(l) for l in leads], "leads")


@app.patch("/leads/{lead_id}", response_model=Lead)
def update_lead(request: Request, lead_id: str, body: LeadStatusUpdate) -> Lead:
    user, store = current_user(request), get_store(request)
    lead = store.update_lead(user.id, lead_id, status=body.status, notes=body.notes)
    if lead is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


@app.get("/subscription", response_model=SubscriptionOut)
def get_subscription(request: Request) -> SubscriptionOut:
    user, store = current_user(request), get_store(request)
    return _usage(user.id, store)


@app.put("/subscription", response_model=SubscriptionOut)
def put_subscription(request: Request, body: SubscriptionUpdate) -> SubscriptionOut:
    user, store = current_user(request), get_store(request)
    store.set_plan(user.id, body.plan)
    return _usage(user.id, store)
