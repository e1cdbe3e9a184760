import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Literal, Optional

import httpx
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

# Load env vars
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent
sys.path.append(str(BASE_DIR))

from clip_core.config_manager import ConfigManager  # noqa: E402
from clip_core.errors import ClipCoreError  # noqa: E402
from clip_core.intelligence.analyst import ContentAnalyst  # noqa: E402
from clip_core.intelligence.engine import ClipExtractionEngine  # noqa: E402
from clip_core.intelligence.models import AnalysisRequest, ContentType, VideoMetadata  # noqa: E402
from clip_core.intelligence.scoring import EngagementIndicators, calculate_viral_score  # noqa: E402
from clip_core.utils.logger import intercept_stdlib_logging  # noqa: E402
from clip_core.worker import process_audio_task  # noqa: E402

intercept_stdlib_logging()

RELAY_TIMEOUT_SECONDS = 30.0
BODY_METHODS = {"POST", "PUT", "PATCH"}

# HTTP status for each analysis failure code; anything else is an upstream problem.
ANALYSIS_ERROR_STATUS = {
    "EMPTY_TRANSCRIPT": 400,
    "INVALID_REQUEST": 400,
    "RATE_LIMIT_EXCEEDED": 429,
    "NOT_CONFIGURED": 503,
}

# --- App Configuration ---
app = FastAPI(title="Clip Core Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Data Models ---
class RelayRequest(BaseModel):
    protocol: Optional[str] = None
    origin: Optional[str] = None
    path: Optional[str] = None
    method: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[Any] = None


class ScoreRequest(BaseModel):
    transcript: str
    duration: float
    indicators: Optional[EngagementIndicators] = None


class TranscriptionJobRequest(BaseModel):
    audio_url: str
    content_type: ContentType = ContentType.AUDIO
    language: Optional[str] = None


class ViralAnalysisRequest(BaseModel):
    transcript: str
    metadata: Optional[VideoMetadata] = None


class ViralScoreRequest(BaseModel):
    content: str
    content_type: Literal["transcript", "title", "description"] = "transcript"


class InsightsRequest(BaseModel):
    transcript: str
    focus_areas: Optional[List[str]] = None


# --- Dependencies ---
@lru_cache
def get_engine() -> ClipExtractionEngine:
    # Cached so every request shares one completion client and its rate limit window.
    try:
        cm = ConfigManager()
    except FileNotFoundError as e:
        logger.error(f"Error reading settings: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
    return ClipExtractionEngine(cm)


def get_analyst(engine: ClipExtractionEngine = Depends(get_engine)) -> ContentAnalyst:
    if not engine.client:
        raise HTTPException(status_code=503, detail="Completion client not configured")
    return ContentAnalyst(engine.client)


def _error_response(e: ClipCoreError) -> JSONResponse:
    status = ANALYSIS_ERROR_STATUS.get(e.code, 502)
    return JSONResponse(status_code=status, content={"error": e.message, "error_code": e.code})


async def get_relay_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=RELAY_TIMEOUT_SECONDS) as client:
        yield client


# --- Routes ---
@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.post("/api/proxy")
async def relay(request: RelayRequest, client: httpx.AsyncClient = Depends(get_relay_client)):
    """Forwards a call to an upstream API and returns its JSON and status verbatim."""
    if not (request.protocol and request.origin and request.path and request.method):
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields: protocol, origin, path, method"},
        )

    method = request.method.upper()
    url = f"{request.protocol}://{request.origin}{request.path}"
    headers = httpx.Headers({"Content-Type": "application/json"})
    headers.update(request.headers)

    try:
        kwargs: Dict[str, Any] = {"headers": headers}
        if request.body is not None and method in BODY_METHODS:
            kwargs["json"] = request.body
        response = await client.request(method, url, **kwargs)
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Proxy API error for {method} {url}: {e}")
        return JSONResponse(status_code=500, content={"error": "Proxy request failed"})

    return JSONResponse(status_code=response.status_code, content=data)


@app.post("/api/analyze")
def analyze(request: AnalysisRequest, engine: ClipExtractionEngine = Depends(get_engine)):
    # Sync handler: FastAPI runs it in a threadpool while the completion call blocks.
    result = engine.analyze(request)
    if not result.success:
        status = ANALYSIS_ERROR_STATUS.get(result.error_code, 502)
        return JSONResponse(status_code=status, content=result.model_dump(mode="json", by_alias=True))
    return result.model_dump(mode="json", by_alias=True)


@app.post("/api/viral-analysis")
def viral_analysis(request: ViralAnalysisRequest, analyst: ContentAnalyst = Depends(get_analyst)):
    try:
        result = analyst.analyze_viral_potential(request.transcript, request.metadata)
    except ClipCoreError as e:
        logger.error(f"Viral analysis failed [{e.code}]: {e.message}")
        return _error_response(e)
    return result.model_dump(mode="json")


@app.post("/api/viral-score")
def viral_score(request: ViralScoreRequest, analyst: ContentAnalyst = Depends(get_analyst)):
    try:
        return analyst.generate_viral_score(request.content, request.content_type).model_dump(mode="json")
    except ClipCoreError as e:
        return _error_response(e)


@app.post("/api/insights")
def insights(request: InsightsRequest, analyst: ContentAnalyst = Depends(get_analyst)):
    try:
        return analyst.extract_key_insights(request.transcript, request.focus_areas).model_dump(mode="json")
    except ClipCoreError as e:
        return _error_response(e)


@app.get("/api/trending")
def trending(
    category: Optional[str] = None,
    region: Optional[str] = None,
    timeframe: Optional[str] = None,
    analyst: ContentAnalyst = Depends(get_analyst),
):
    try:
        topics = analyst.get_trending_topics(category, region, timeframe)
    except ClipCoreError as e:
        return _error_response(e)
    return {"topics": [t.model_dump(mode="json") for t in topics]}


@app.post("/api/score")
async def score(request: ScoreRequest):
    value = calculate_viral_score(request.transcript, request.duration, request.indicators)
    return {"score": value}


@app.post("/api/transcriptions", status_code=202)
async def start_transcription(request: TranscriptionJobRequest):
    """Polling can take minutes, so the pipeline is handed to the Celery worker."""
    task = process_audio_task.delay(
        request.audio_url, content_type=request.content_type.value, language=request.language
    )
    logger.info(f"Dispatched pipeline task {task.id} for {request.audio_url}")
    return {"status": "queued", "task_id": task.id}


@app.get("/api/transcriptions/{task_id}")
async def get_transcription(task_id: str):
    result = process_audio_task.AsyncResult(task_id)
    payload: Dict[str, Any] = {"task_id": task_id, "state": result.state}
    if result.ready():
        payload["result"] = result.result
    return payload


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
