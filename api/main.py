"""
Compounding API — Main Application

POST /api/analyze-text           — Score text for frustration
POST /api/feedback               — Record an expected-vs-actual correction
GET  /api/stats                  — Running statistics
GET  /api/evolution              — Rule growth and feedback accuracy
GET  /api/patterns               — Current rules, per group
POST /api/review                 — Review a code snippet
POST /api/review/{id}/resolve    — Mark review issues resolved
GET  /api/review/insights        — Reviewer statistics
POST /api/architecture/analyze    — Capture decisions, patterns and debt from a change
GET  /api/architecture/insights   — Architecture trends and recommendations
GET  /api/architecture/knowledge-base — Export everything the capturer learned
GET  /health                     — Health check
"""

from __future__ import annotations

import threading
import time
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import Depends, FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from compounding import __version__
from compounding.config import settings
from compounding.architecture import ArchitectureCapturer
from compounding.logging import setup_logging, get_logger, log_fields
from compounding.reviewer import CodeReviewer
from compounding.scorer import HeuristicScorer, InvalidInput
from compounding.schemas.analysis import (
    AnalyzeRequest,
    AnalysisResponse,
    FeedbackRequest,
    FeedbackResponse,
    StatsResponse,
    EvolutionResponse,
    PatternsResponse,
    ReviewRequest,
    ReviewResponse,
    ResolveRequest,
    ResolveResponse,
    InsightsResponse,
    HealthResponse,
)
from compounding.schemas.architecture import (
    ChangeRequest,
    ArchitectureAnalysisResponse,
    ArchitectureInsightsResponse,
    KnowledgeBaseResponse,
)

logger = get_logger("api")


class Engine:
    """The scorer, reviewer and capturer served by this process, behind one lock."""

    def __init__(self):
        self.scorer = HeuristicScorer()
        self.reviewer = CodeReviewer()
        self.capturer = ArchitectureCapturer()
        self.lock = threading.Lock()


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create a fresh engine for this app instance."""
    setup_logging()
    app.state.engine = Engine()
    logger.info("Compounding API starting")
    yield
    logger.info("Compounding API shutting down")


app = FastAPI(
    title="Compounding API",
    description="Frustration detector and code reviewer that learn from what they see",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    allow_credentials=False,
)


def get_engine(request: Request) -> Engine:
    return request.app.state.engine


# ============================================================
# ERROR HANDLERS
# ============================================================

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing body fields are client errors: 400, not 422."""
    missing_text = any(
        err.get("type") == "missing" and tuple(err.get("loc", ()))[-1:] == ("text",)
        for err in exc.errors()
    )
    message = "Text is required" if missing_text else "Invalid request body"
    return JSONResponse(
        status_code=400,
        content={"error": message, "detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra=log_fields(error=str(exc), path=request.url.path, method=request.method),
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. The request could not be completed."},
    )


# ============================================================
# ROUTES — FRUSTRATION SCORER
# ============================================================

@app.post("/api/analyze-text", response_model=AnalysisResponse)
async def analyze_text(request: AnalyzeRequest, engine: Engine = Depends(get_engine)):
    """Score text for frustration."""
    with engine.lock:
        result = engine.scorer.analyze(request.text)

    logger.info(
        f"Analysis complete: score={result.score} level={result.level}",
        extra=log_fields(score=result.score, level=result.level),
    )
    return AnalysisResponse.model_validate(asdict(result))


@app.post("/api/feedback", response_model=FeedbackResponse)
async def feedback(request: FeedbackRequest, engine: Engine = Depends(get_engine)):
    """Record a correction for later accuracy reporting."""
    with engine.lock:
        engine.scorer.add_feedback(
            request.text, request.expected_score, request.actual_score,
        )
    return {"message": "Feedback recorded"}


@app.get("/api/stats", response_model=StatsResponse)
async def stats(engine: Engine = Depends(get_engine)):
    with engine.lock:
        return StatsResponse.model_validate(engine.scorer.get_stats())


@app.get("/api/evolution", response_model=EvolutionResponse)
async def evolution(engine: Engine = Depends(get_engine)):
    with engine.lock:
        return EvolutionResponse.model_validate(engine.scorer.get_evolution_report())


@app.get("/api/patterns", response_model=PatternsResponse)
async def patterns(engine: Engine = Depends(get_engine)):
    """Return every rule currently in each group, learned rules included."""
    with engine.lock:
        groups = {
            name: [
                {"regex": rule.regex, "weight": rule.weight, "source": rule.source}
                for rule in group.rules
            ]
            for name, group in engine.scorer.groups.items()
        }
    return PatternsResponse(
        total_patterns=sum(len(rules) for rules in groups.values()),
        groups=groups,
    )


# ============================================================
# ROUTES — CODE REVIEWER
# ============================================================

@app.post("/api/review", response_model=ReviewResponse)
async def review_code(request: ReviewRequest, engine: Engine = Depends(get_engine)):
    """Review a code snippet for smells and good practices."""
    with engine.lock:
        review = engine.reviewer.review(request.code, request.context)

    logger.info(
        f"Review complete: score={review.score} issues={len(review.issues)}",
        extra=log_fields(review_id=review.id, score=review.score),
    )
    return asdict(review)


@app.post("/api/review/{review_id}/resolve", response_model=ResolveResponse)
async def resolve_issues(
    review_id: str, request: ResolveRequest, engine: Engine = Depends(get_engine),
):
    with engine.lock:
        resolved = engine.reviewer.mark_resolved(review_id, request.issue_types)
    return {"review_id": review_id, "resolved": resolved}


@app.get("/api/review/insights", response_model=InsightsResponse)
async def review_insights(engine: Engine = Depends(get_engine)):
    with engine.lock:
        return InsightsResponse.model_validate(engine.reviewer.get_insights())


# ============================================================
# ROUTES — ARCHITECTURE CAPTURER
# ============================================================

@app.post("/api/architecture/analyze", response_model=ArchitectureAnalysisResponse)
async def analyze_change(request: ChangeRequest, engine: Engine = Depends(get_engine)):
    """Capture decisions, pattern usage and debt from one code change."""
    with engine.lock:
        analysis = engine.capturer.analyze_change(
            request.code, request.file_path, request.change_type,
        )

    logger.info(
        f"Architecture analysis complete: decisions={len(analysis.decisions)} debt={len(analysis.debt)}",
        extra=log_fields(analysis_id=analysis.id, file_path=request.file_path),
    )
    return asdict(analysis)


@app.get("/api/architecture/insights", response_model=ArchitectureInsightsResponse)
async def architecture_insights(engine: Engine = Depends(get_engine)):
    with engine.lock:
        return ArchitectureInsightsResponse.model_validate(engine.capturer.get_insights())


@app.get("/api/architecture/knowledge-base", response_model=KnowledgeBaseResponse)
async def knowledge_base(engine: Engine = Depends(get_engine)):
    with engine.lock:
        return KnowledgeBaseResponse.model_validate(engine.capturer.export_knowledge_base())


@app.get("/health", response_model=HealthResponse)
async def health(engine: Engine = Depends(get_engine)):
    """Health check."""
    with engine.lock:
        report = engine.scorer.get_evolution_report()
        return {
            "status": "operational",
            "version": __version__,
            "patterns_count": {
                name: len(group) for name, group in engine.scorer.groups.items()
            },
            "learned_patterns": report["learned_pattern_count"],
            "total_analyses": engine.scorer.stats.total_analyses,
            "total_reviews": engine.reviewer.metrics.total_reviews,
        }


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with method, path, status, duration."""
    path = request.url.path
    if path == "/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra=log_fields(
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        ),
    )
    return response
