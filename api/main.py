from fastapi import FastAPI, APIRouter, HTTPException, Depends, Response, Request, Body
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from contextlib import asynccontextmanager
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from typing import List, Optional
import structlog

from core.config import Settings
from core.exceptions import InvalidStateError
from core.logger import setup_logging
from db.session import build_engine, build_session_factory, init_models, get_db
from schemas.question import QuestionUpdate, BatchRequest, parse_question, parse_questions
from schemas.participant import ParticipantCreate, ParticipantUpdate, Participant
from services.question_service import QuestionService, question_to_dict
from services.participant_service import ParticipantService, participant_to_dict
from services.settings_service import SettingsService
from services.leaderboard import rank_participants, export_csv

logger = structlog.get_logger()

# API Documentation
API_DESCRIPTION = """
## Quiz Challenge API

REST API behind the timed quiz challenge: participant registration and
submission, question content, event settings and cache metadata.

### Conventions

- JSON bodies, camelCase field names.
- Errors are returned as `{"error": "..."}`.
- Every question mutation moves `metadata/questions.lastUpdated`, which
  clients use to decide whether a cached question set is stale.
"""

TAGS_METADATA = [
    {"name": "questions", "description": "Question CRUD and batch operations."},
    {"name": "participants", "description": "Registration, submission and bulk clear."},
    {"name": "settings", "description": "Event settings and collection metadata."},
    {"name": "leaderboard", "description": "Ranked results."},
]


# === Response Models ===

class SuccessResponse(BaseModel):
    """Generic success response."""
    success: bool = Field(default=True, description="Operation status")


class CreatedResponse(BaseModel):
    id: str = Field(..., description="Identifier assigned by the server")


class DeletedResponse(SuccessResponse):
    deleted: int = Field(..., description="Number of items deleted")


# === Dependencies ===

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_question_service(db: AsyncSession = Depends(get_db), settings: Settings = Depends(get_settings)):
    return QuestionService(db, batch_limit=settings.BATCH_WRITE_LIMIT)


def get_participant_service(db: AsyncSession = Depends(get_db), settings: Settings = Depends(get_settings)):
    return ParticipantService(db, batch_limit=settings.BATCH_WRITE_LIMIT)


def get_settings_service(db: AsyncSession = Depends(get_db)):
    return SettingsService(db)


def _require_changes(changes: Optional[BaseModel]):
    if changes is None or not changes.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")


router = APIRouter()


# ==================== SETTINGS ====================

@router.get("/settings/{key}", tags=["settings"], summary="Get settings item")
async def get_settings_item(key: str, service: SettingsService = Depends(get_settings_service)):
    return await service.get_settings(key)


@router.put("/settings/{key}", response_model=SuccessResponse, tags=["settings"], summary="Replace settings item")
async def put_settings_item(
    key: str,
    data: dict = Body(default_factory=dict),
    service: SettingsService = Depends(get_settings_service),
):
    await service.put_settings(key, data)
    return {"success": True}


# ==================== METADATA ====================

@router.get("/metadata/{key}", tags=["settings"], summary="Get metadata marker")
async def get_metadata_item(key: str, service: SettingsService = Depends(get_settings_service)):
    return await service.get_metadata(key)


@router.put("/metadata/{key}", response_model=SuccessResponse, tags=["settings"], summary="Replace metadata marker")
async def put_metadata_item(
    key: str,
    data: dict = Body(default_factory=dict),
    service: SettingsService = Depends(get_settings_service),
):
    await service.put_metadata(key, data)
    return {"success": True}


# ==================== QUESTIONS ====================

@router.post(
    "/questions/batch",
    tags=["questions"],
    summary="Batch question operations",
    description="Actions: seed, bulkImport, deleteSelected, renumber, moveSection.",
    responses={400: {"description": "Unknown action or invalid items"}},
)
async def batch_questions(batch: BatchRequest, service: QuestionService = Depends(get_question_service)):
    action = batch.action

    if action in ("seed", "bulkImport"):
        try:
            questions = parse_questions(batch.items)
        except PydanticValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid question items: {e.error_count()} error(s)")
        created = await service.create_many(questions)
        return {"success": True, "created": len(created)}

    if action == "deleteSelected":
        deleted = await service.delete_many(batch.ids)
        return {"success": True, "deleted": deleted}

    if action == "renumber":
        await service.renumber(batch.updates)
        return {"success": True}

    if action == "moveSection":
        if not batch.section:
            raise HTTPException(status_code=400, detail="moveSection requires a section")
        await service.move_section(batch.ids, batch.section)
        return {"success": True}

    logger.warning("Unknown batch action", action=action)
    raise HTTPException(status_code=400, detail=f"Unknown batch action: {action}")


@router.get("/questions", tags=["questions"], summary="List all questions")
async def list_questions(service: QuestionService = Depends(get_question_service)):
    rows = await service.list_questions()
    return [question_to_dict(row) for row in rows]


@router.post("/questions", response_model=CreatedResponse, status_code=201, tags=["questions"], summary="Create question")
async def create_question(data: dict = Body(...), service: QuestionService = Depends(get_question_service)):
    try:
        question = parse_question(data)
    except PydanticValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid question: {e.error_count()} error(s)")
    question_id = await service.create_question(question)
    return {"id": question_id}


@router.put(
    "/questions/{question_id}",
    response_model=SuccessResponse,
    tags=["questions"],
    summary="Update question",
    responses={400: {"description": "Empty or invalid body"}, 404: {"description": "Question not found"}},
)
async def update_question(
    question_id: str,
    changes: Optional[QuestionUpdate] = Body(None),
    service: QuestionService = Depends(get_question_service),
):
    _require_changes(changes)
    if not await service.update_question(question_id, changes):
        raise HTTPException(status_code=404, detail="Question not found")
    return {"success": True}


@router.delete("/questions/{question_id}", response_model=SuccessResponse, tags=["questions"], summary="Delete question")
async def delete_question(question_id: str, service: QuestionService = Depends(get_question_service)):
    await service.delete_question(question_id)
    return {"success": True}


# ==================== PARTICIPANTS ====================

@router.get("/participants", tags=["participants"], summary="List participants")
async def list_participants(service: ParticipantService = Depends(get_participant_service)):
    rows = await service.list_participants()
    return [participant_to_dict(row) for row in rows]


@router.post("/participants", response_model=CreatedResponse, status_code=201, tags=["participants"], summary="Register participant")
async def create_participant(data: ParticipantCreate, service: ParticipantService = Depends(get_participant_service)):
    participant_id = await service.create_participant(data)
    return {"id": participant_id}


@router.put(
    "/participants/{participant_id}",
    response_model=SuccessResponse,
    tags=["participants"],
    summary="Update participant",
    responses={
        400: {"description": "Empty or invalid body"},
        404: {"description": "Participant not found"},
        409: {"description": "Participant already submitted"},
    },
)
async def update_participant(
    participant_id: str,
    changes: Optional[ParticipantUpdate] = Body(None),
    service: ParticipantService = Depends(get_participant_service),
):
    _require_changes(changes)
    try:
        updated = await service.update_participant(participant_id, changes)
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if not updated:
        raise HTTPException(status_code=404, detail="Participant not found")
    return {"success": True}


@router.delete("/participants", response_model=DeletedResponse, tags=["participants"], summary="Delete ALL participants")
async def delete_all_participants(service: ParticipantService = Depends(get_participant_service)):
    deleted = await service.delete_all()
    return {"success": True, "deleted": deleted}


# ==================== LEADERBOARD ====================

async def _load_participants(service: ParticipantService) -> List[Participant]:
    rows = await service.list_participants()
    return [Participant.model_validate(participant_to_dict(row)) for row in rows]


@router.get("/leaderboard", tags=["leaderboard"], summary="Ranked participants")
async def get_leaderboard(submitted_only: bool = False, service: ParticipantService = Depends(get_participant_service)):
    participants = await _load_participants(service)
    return [row.to_wire() for row in rank_participants(participants, submitted_only=submitted_only)]


@router.get("/leaderboard.csv", tags=["leaderboard"], summary="Leaderboard CSV export")
async def get_leaderboard_csv(service: ParticipantService = Depends(get_participant_service)):
    participants = await _load_participants(service)
    return Response(
        content=export_csv(participants),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="leaderboard.csv"'},
    )


# ==================== ERROR HANDLERS ====================

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Unmatched route or method
    if exc.status_code in (404, 405) and exc.detail in ("Not Found", "Method Not Allowed"):
        return JSONResponse(
            status_code=404,
            content={"error": "Not found", "path": request.url.path, "method": request.method},
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    logger.info("Rejected request body", path=request.url.path, errors=len(details))
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled API error", path=request.url.path, method=request.method, error=str(exc))
    return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    engine = build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.LOG_LEVEL, json_logs=settings.ENV == "production")
        await init_models(engine)
        logger.info("API started", env=settings.ENV)
        yield
        await engine.dispose()

    app = FastAPI(
        title="Quiz Challenge API",
        description=API_DESCRIPTION,
        version="1.0.0",
        openapi_tags=TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    prefix = settings.PATH_PREFIX.rstrip("/")

    @app.middleware("http")
    async def strip_stage_prefix(request: Request, call_next):
        # Deployed behind a stage path (e.g. /prod/questions)
        path = request.scope["path"]
        if prefix and (path == prefix or path.startswith(prefix + "/")):
            request.scope["path"] = path[len(prefix):] or "/"
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(router)
    return app


app = create_app()
