import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from keyrecall.application.review_service import ReviewService
from keyrecall.consts import VERSION
from keyrecall.domain.review.errors import InvalidId, StorageError, UnknownItem
from keyrecall.domain.review.models import ReviewResult, ReviewSession, SessionConfig

logger = logging.getLogger("keyrecall.server")

# oldest open sessions are dropped beyond this many
MAX_OPEN_SESSIONS = 100


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class InitializeRequest(BaseModel):
    shortcut_ids: list[str]


class InitializeResponse(BaseModel):
    added: list[str]
    total_shortcuts: int


class SessionRequest(BaseModel):
    max_items: int | None = Field(default=None, ge=0)
    focus_on_difficult: bool = False


class SessionResponse(BaseModel):
    id: str
    created_at: datetime
    items: list[str]
    max_items: int
    focus_on_difficult: bool


class ResultPayload(BaseModel):
    shortcut_id: str
    # validated per result by the core so one bad token cannot reject the batch
    performance: str
    response_time_ms: int = Field(default=0, ge=0)


class CompleteRequest(BaseModel):
    results: list[ResultPayload]


class StatisticsResponse(BaseModel):
    total_shortcuts: int
    due_shortcuts: int
    average_ease_factor: float
    mastery_level: float


class FailureResponse(BaseModel):
    shortcut_id: str
    reason: str
    message: str


class CompleteResponse(BaseModel):
    session_id: str
    completed_at: datetime
    updated_count: int
    updated_ids: list[str]
    failures: list[FailureResponse]
    statistics: StatisticsResponse


def _session_response(session: ReviewSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        created_at=session.created_at,
        items=list(session.items),
        max_items=session.config.max_items,
        focus_on_difficult=session.config.focus_on_difficult,
    )


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(
    service: ReviewService | None = None, max_open_sessions: int = MAX_OPEN_SESSIONS
) -> FastAPI:
    """
    Build the HTTP app around one ReviewService.

    When no service is given, one is built from the resolved config at startup.
    At most max_open_sessions sessions are held; creating one more evicts the
    oldest.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"keyrecall server v{VERSION} starting up...")
        if getattr(app.state, "service", None) is None:
            from keyrecall.application.config import resolve_config
            from keyrecall.application.factory import build_review_service

            app.state.service = build_review_service(resolve_config())
        yield
        # Shutdown
        logger.info("keyrecall server shutting down...")

    app = FastAPI(
        title="keyrecall Server",
        description="Spaced-repetition review scheduling for keyboard shortcuts.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.service = service
    # open sessions in creation order; discarded on completion, abandonment or eviction
    app.state.sessions = {}
    app.state.start_time = time.time()

    def get_service(request: Request) -> ReviewService:
        svc = request.app.state.service
        if svc is None:
            raise HTTPException(status_code=503, detail="Review service is not ready")
        return svc

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """
        Simple health check to verify server is reachable.
        """
        return HealthResponse(
            status="ok",
            version=VERSION,
            uptime_seconds=time.time() - request.app.state.start_time,
        )

    @app.get("/version")
    async def get_version():
        return {"version": VERSION}

    @app.post("/system/initialize", response_model=InitializeResponse)
    async def initialize_system(req: InitializeRequest, request: Request):
        svc = get_service(request)
        try:
            added = svc.initialize_system(req.shortcut_ids)
        except InvalidId as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return InitializeResponse(added=added, total_shortcuts=len(svc.store))

    @app.get("/items/due")
    async def list_due(request: Request):
        return [item.to_dict() for item in get_service(request).due_items()]

    @app.get("/items/{shortcut_id}")
    async def get_item(shortcut_id: str, request: Request):
        try:
            return get_service(request).get_item(shortcut_id).to_dict()
        except UnknownItem as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

    @app.post("/sessions", response_model=SessionResponse)
    async def create_session(req: SessionRequest, request: Request):
        svc = get_service(request)
        config = SessionConfig(
            max_items=req.max_items if req.max_items is not None else svc.default_max_items,
            focus_on_difficult=req.focus_on_difficult,
        )
        session = svc.create_review_session(config)
        sessions = request.app.state.sessions
        while sessions and len(sessions) >= max_open_sessions:
            evicted = next(iter(sessions))
            del sessions[evicted]
            logger.info(f"Session {evicted} evicted (limit of {max_open_sessions} open sessions)")
        sessions[session.id] = session
        return _session_response(session)

    @app.get("/sessions/{session_id}", response_model=SessionResponse)
    async def get_session(session_id: str, request: Request):
        session = request.app.state.sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
        return _session_response(session)

    @app.post("/sessions/{session_id}/complete", response_model=CompleteResponse)
    async def complete_session(session_id: str, req: CompleteRequest, request: Request):
        svc = get_service(request)
        session = request.app.state.sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")

        results = [
            ReviewResult(r.shortcut_id, r.performance, r.response_time_ms) for r in req.results
        ]
        try:
            outcome = svc.complete_review_session(session, results)
        except StorageError as e:
            # the store rolled back, so the session stays open for a retry
            logger.error(f"Completing session {session_id} failed: {e}", exc_info=True)
            raise HTTPException(
                status_code=500,
                detail=f"Review state could not be saved; nothing was recorded: {e}",
            ) from e
        except Exception as e:
            logger.error(f"Completing session {session_id} failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(e)) from e

        request.app.state.sessions.pop(session_id, None)

        return CompleteResponse(
            session_id=outcome.session_id,
            completed_at=outcome.completed_at,
            updated_count=outcome.updated_count,
            updated_ids=outcome.updated_ids,
            failures=[
                FailureResponse(shortcut_id=f.shortcut_id, reason=f.reason, message=f.message)
                for f in outcome.failures
            ],
            statistics=StatisticsResponse(**outcome.statistics.to_dict()),
        )

    @app.delete("/sessions/{session_id}")
    async def abandon_session(session_id: str, request: Request):
        """Drop an open session; the review state is not touched."""
        if request.app.state.sessions.pop(session_id, None) is None:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
        logger.info(f"Session {session_id} abandoned")
        return {"abandoned": session_id}

    @app.get("/statistics", response_model=StatisticsResponse)
    async def get_statistics(request: Request):
        return StatisticsResponse(**get_service(request).get_statistics().to_dict())

    return app


app = create_app()
