"""CaddyPro Backend: conversational intent pipeline over HTTP."""
from contextlib import asynccontextmanager
from pathlib import Path
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

# Load env before anything else
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / ".env")

from config.settings import get_settings
from config.validators import validate_startup_config
from core.exceptions import CaddyError, NoActiveSessionError, NoPendingConfirmationError
from core.logging_config import setup_logging
from gateway.session_registry import (
    active_session_count,
    end_session,
    get_or_create_pipeline,
    get_pipeline,
)
from intent.entities import parse_club
from intent.models import PressureContext
from prompting.llm_gateway import get_llm_client
from schemas.api import (
    ConfirmRequest,
    ContextResponse,
    HoleRequest,
    InputRequest,
    OutcomeResponse,
    RoundRequest,
    ShotRequest,
    SuggestionRequest,
    outcome_to_response,
)
from session.context_injector import build_follow_up_context, build_summary
from session.models import Shot

# ---- Setup logging ----
setup_logging()
logger = logging.getLogger(__name__)

_CONFLICT_ERRORS = (NoActiveSessionError, NoPendingConfirmationError)


# ---- Lifespan ----
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    validate_startup_config(settings)
    logger.info("CaddyPro BE starting env=%s mock_llm=%s", settings.ENV, settings.MOCK_LLM)
    yield
    logger.info("CaddyPro BE shutdown complete")


# ---- App ----
app = FastAPI(
    title="CaddyPro Conversation API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=[o.strip() for o in get_settings().CORS_ORIGINS.split(",") if o.strip()],
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter(prefix="/api")


@app.exception_handler(CaddyError)
async def caddy_error_handler(request: Request, exc: CaddyError):
    status = 409 if isinstance(exc, _CONFLICT_ERRORS) else 400
    logger.warning("[API] %s %s -> %d code=%s", request.method, request.url.path, status, exc.code)
    return JSONResponse(
        status_code=status,
        content={"code": exc.code, "message": exc.message, "recoverable": exc.recoverable},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=422, content={"code": "INVALID_VALUE", "message": str(exc)})


# =====================================================
#  REST Endpoints
# =====================================================

# ---- Health ----
@api_router.get("/health")
async def health():
    settings = get_settings()
    llm = get_llm_client()
    return {
        "status": "ok",
        "env": settings.ENV,
        "version": "0.1.0",
        "mock_llm": settings.MOCK_LLM,
        "llm_provider": type(llm).__name__,
        "llm_healthy": await llm.is_healthy(),
        "active_sessions": active_session_count(),
    }


# ---- Conversation ----
@api_router.post("/sessions/{session_id}/input", response_model=OutcomeResponse)
async def submit_input(session_id: str, req: InputRequest):
    pipeline = get_or_create_pipeline(session_id)
    outcome = await pipeline.submit(req.text, req.input_type)
    return outcome_to_response(outcome)


@api_router.post("/sessions/{session_id}/confirm", response_model=OutcomeResponse)
async def confirm_intent(session_id: str, req: ConfirmRequest):
    pipeline = get_or_create_pipeline(session_id)
    return outcome_to_response(await pipeline.confirm(req.accepted))


@api_router.post("/sessions/{session_id}/suggestion", response_model=OutcomeResponse)
async def select_suggestion(session_id: str, req: SuggestionRequest):
    pipeline = get_or_create_pipeline(session_id)
    return outcome_to_response(await pipeline.select_suggestion(req.intent_type, req.index))


# ---- Round context ----
@api_router.post("/sessions/{session_id}/round", response_model=ContextResponse)
async def start_round(session_id: str, req: RoundRequest):
    pipeline = get_or_create_pipeline(session_id)
    pipeline.store.update_round(req.round_id, req.course_name, req.starting_hole, req.par)
    return _context_response(session_id)


@api_router.post("/sessions/{session_id}/hole", response_model=ContextResponse)
async def update_hole(session_id: str, req: HoleRequest):
    pipeline = get_or_create_pipeline(session_id)
    pipeline.store.update_hole(req.hole, req.par)
    return _context_response(session_id)


@api_router.post("/sessions/{session_id}/shot", response_model=ContextResponse)
async def record_shot(session_id: str, req: ShotRequest):
    club = parse_club(req.club)
    if club is None:
        raise ValueError(f"Unknown club: {req.club}")
    pipeline = get_or_create_pipeline(session_id)
    pipeline.store.record_shot(Shot(
        club=club,
        lie=req.lie,
        miss_direction=req.miss_direction,
        pressure_context=PressureContext(is_user_tagged=True) if req.under_pressure else None,
        notes=req.notes,
    ))
    return _context_response(session_id)


@api_router.get("/sessions/{session_id}/context", response_model=ContextResponse)
async def get_context(session_id: str):
    if get_pipeline(session_id) is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return _context_response(session_id)


@api_router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    if not end_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"ended": True, "active_sessions": active_session_count()}


def _context_response(session_id: str) -> ContextResponse:
    context = get_pipeline(session_id).store.snapshot()
    return ContextResponse(
        summary=build_summary(context),
        follow_up=build_follow_up_context(context),
        history_size=len(context.conversation_history),
        has_active_round=context.has_active_round,
    )


# Include REST router
app.include_router(api_router)
