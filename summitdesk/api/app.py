"""
Summit Desk - HTTP API
FastAPI application exposing the public forms, the admin review endpoints and
the document/gallery listings.

Every response body is the envelope {success, data?, error?, message?}.
Clients branch on `success`; the status code mirrors it (400 invalid,
401 unauthorized, 404 not found, 409 duplicate, 500 storage, 201 created).

Run with:  summitdesk serve   (or)   uvicorn summitdesk.api.app:app
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from summitdesk.config import config
from summitdesk.logging_config import configure_logging
from summitdesk.db.connection import check_database
from summitdesk.engine import workflow, submissions, analytics, dashboard, library
from summitdesk.engine.kinds import EntityKind, get_kind
from summitdesk.models import (
    Result, RequestOrigin,
    FAILURE_INVALID, FAILURE_DUPLICATE, FAILURE_NOT_FOUND, FAILURE_STORAGE, FAILURE_UNAUTHORIZED,
)
from summitdesk.validation import (
    RegistrationForm, QuestionForm, PartnershipForm, ExhibitorForm, FeedbackForm, AdminLogin,
    status_update_model, summarize_validation_errors,
)
from summitdesk.api import auth

logger = logging.getLogger(__name__)

FAILURE_STATUS_CODES = {
    FAILURE_INVALID: 400,
    FAILURE_UNAUTHORIZED: 401,
    FAILURE_NOT_FOUND: 404,
    FAILURE_DUPLICATE: 409,
    FAILURE_STORAGE: 500,
}


def respond(result: Result, success_code: int = 200) -> JSONResponse:
    if result.success:
        status_code = success_code
    else:
        status_code = FAILURE_STATUS_CODES.get(result.failure, 500)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(result.to_dict()))


def request_origin(request: Request) -> RequestOrigin:
    """
    Network metadata for analytics. Behind a proxy the client address is the
    first X-Forwarded-For entry, then X-Real-IP, then the socket peer.
    """
    headers = request.headers
    forwarded = headers.get('x-forwarded-for')
    if forwarded:
        ip_address = forwarded.split(',')[0].strip() or None
    else:
        ip_address = headers.get('x-real-ip') or (request.client.host if request.client else None)
    return RequestOrigin(
        ip_address=ip_address,
        user_agent=headers.get('user-agent'),
        referrer=headers.get('referer'),
    )


def _kind(kind_name: str) -> EntityKind:
    try:
        return get_kind(kind_name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown submission kind: {kind_name}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(server=True)
    analytics.register_handlers()
    logger.info(f"{config.EVENT_NAME} API starting")
    yield
    logger.info(f"{config.EVENT_NAME} API stopped")


app = FastAPI(
    title=f"{config.EVENT_NAME} Submission Desk",
    description="Public submission forms and admin review workflow",
    version="1.0.0",
    lifespan=lifespan,
)

if config.CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    return respond(Result.fail(summarize_validation_errors(exc.errors()), FAILURE_INVALID))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={'success': False, 'error': str(exc.detail)},
        headers=getattr(exc, 'headers', None),
    )


# =============================================================================
# PUBLIC
# =============================================================================

@app.get("/health")
def health():
    """Health check endpoint"""
    database = check_database()
    result = Result.ok({'status': 'healthy' if database else 'degraded', 'database': database})
    return respond(result, 200 if database else 503)


@app.post("/api/registrations")
def submit_registration(form: RegistrationForm, request: Request):
    return respond(submissions.create_registration(form.to_payload(), request_origin(request)), 201)


@app.post("/api/questions")
def submit_question(form: QuestionForm, request: Request):
    return respond(submissions.create_question(form.to_payload(), request_origin(request)), 201)


@app.post("/api/partnerships")
def submit_partnership(form: PartnershipForm, request: Request):
    return respond(submissions.create_partnership(form.to_payload(), request_origin(request)), 201)


@app.post("/api/exhibitors")
def submit_exhibitor(form: ExhibitorForm, request: Request):
    return respond(submissions.create_exhibitor(form.to_payload(), request_origin(request)), 201)


@app.post("/api/feedback")
def submit_feedback(form: FeedbackForm, request: Request):
    return respond(submissions.create_feedback(form.to_payload(), request_origin(request)), 201)


@app.get("/api/documents")
def documents(category: Optional[str] = None):
    return respond(library.list_documents(category))


@app.get("/api/gallery")
def gallery(category: Optional[str] = None):
    return respond(library.list_gallery_photos(category))


@app.post("/api/admin/login")
def admin_login(form: AdminLogin):
    return respond(auth.login(form.password))


# =============================================================================
# ADMIN
# Fixed paths are declared before the /{kind}/... patterns they would
# otherwise be captured by.
# =============================================================================

admin = APIRouter(prefix="/api/admin", dependencies=[Depends(auth.require_admin)])


@admin.get("/dashboard")
def dashboard_stats():
    return respond(dashboard.get_dashboard_stats())


@admin.get("/analytics")
def analytics_events(event_type: Optional[str] = None):
    return respond(analytics.list_events(event_type))


@admin.get("/analytics/stats")
def analytics_stats():
    return respond(analytics.event_type_counts())


@admin.get("/analytics/daily")
def analytics_daily(days: int = Query(analytics.DEFAULT_DAILY_WINDOW_DAYS, ge=1, le=365)):
    return respond(analytics.daily_counts(days))


@admin.delete("/documents/{category}/{doc_id}")
def remove_document(category: str, doc_id: str):
    return respond(library.delete_document(category, doc_id))


@admin.get("/registrations/by-email")
def registration_by_email(email: str = Query(..., min_length=3)):
    return respond(submissions.find_registration_by_email(email))


@admin.post("/questions/{question_id}/upvote")
def upvote(question_id: str):
    return respond(submissions.upvote_question(question_id))


@admin.get("/{kind_name}")
def list_kind(kind_name: str, request: Request, status: Optional[str] = None):
    kind = _kind(kind_name)
    filters = {col: request.query_params.get(col) for col in kind.filter_columns}
    return respond(workflow.list_records(kind, status=status, filters=filters))


@admin.get("/{kind_name}/stats")
def kind_stats(kind_name: str):
    return respond(workflow.record_stats(_kind(kind_name)))


@admin.get("/{kind_name}/{record_id}")
def get_one(kind_name: str, record_id: str):
    return respond(workflow.get_record(_kind(kind_name), record_id))


@admin.patch("/{kind_name}/{record_id}/status")
def update_status(kind_name: str, record_id: str, body: Dict[str, Any] = Body(...)):
    kind = _kind(kind_name)
    try:
        update = status_update_model(kind.name).model_validate(body)
    except ValidationError as e:
        return respond(Result.fail(summarize_validation_errors(e.errors()), FAILURE_INVALID))
    return respond(workflow.transition(
        kind, record_id, update.status,
        reviewed_by=update.reviewer(),
        side_fields=update.side_fields(),
    ))


@admin.delete("/{kind_name}/{record_id}")
def delete_one(kind_name: str, record_id: str):
    return respond(workflow.delete_record(_kind(kind_name), record_id))


app.include_router(admin)
