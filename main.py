import os
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import timedelta
from typing import Optional
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pymongo.database import Database

import catalog
from dashboard import build_rows, derive_status, summarize
from database import ReportRepository, connect, ping
from draft import ReportDraft
from errors import (
    ChecklistError,
    LoginRequired,
    MalformedSubmission,
    PersistenceFailure,
    ReportNotFound,
    ValidationFailure,
)
from logging_config import generate_request_id, get_logger, set_request_id, setup_logging
from schemas import ItemStatus, User
from sessions import SessionGateway
from settings import Settings, settings as default_settings
from validation import complete

logger = get_logger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")
templates = Jinja2Templates(directory=TEMPLATES_DIR)

BULK_ACTIONS = {
    "mark-ok-a": ("A", ItemStatus.OK),
    "mark-defective-a": ("A", ItemStatus.DEFECTIVE),
    "mark-ok-b": ("B", ItemStatus.OK),
    "mark-defective-b": ("B", ItemStatus.DEFECTIVE),
}


# Utilities

def wants_json(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    return "application/json" in accept and "text/html" not in accept


def safe_redirect_target(target: Optional[str]) -> str:
    # Local paths only
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return "/dashboard"


def render(request: Request, template: str, context: dict, status_code: int = 200) -> HTMLResponse:
    cfg: Settings = request.app.state.settings
    context = {
        "app_name": cfg.APP_NAME,
        "company_name": cfg.COMPANY_NAME,
        "form_title": cfg.FORM_TITLE,
        **context,
    }
    return templates.TemplateResponse(request, template, context, status_code=status_code)


# Dependencies

def get_sessions(request: Request) -> SessionGateway:
    return request.app.state.sessions


def get_reports(request: Request) -> ReportRepository:
    return request.app.state.reports


def optional_user(request: Request, sessions: SessionGateway = Depends(get_sessions)) -> Optional[User]:
    token = request.cookies.get(request.app.state.settings.SESSION_COOKIE_NAME)
    return sessions.current_user(token)


def require_user(request: Request, user: Optional[User] = Depends(optional_user)) -> User:
    if user is None:
        raise LoginRequired(redirect_to=request.url.path)
    return user


def _attach_database(app: FastAPI, db: Database, cfg: Settings) -> None:
    app.state.database = db
    app.state.reports = ReportRepository(db)
    app.state.sessions = SessionGateway(db, max_age=timedelta(days=cfg.SESSION_MAX_AGE_DAYS))
    app.state.sessions.ensure_indexes()


def create_app(database: Optional[Database] = None, settings: Optional[Settings] = None) -> FastAPI:
    cfg = settings or default_settings
    setup_logging(cfg.LOG_LEVEL, json_logs=cfg.is_production)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if getattr(app.state, "database", None) is None:
            client, db = connect(cfg.DATABASE_URL, cfg.DATABASE_NAME, cfg.DATABASE_TIMEOUT_MS)
            _attach_database(app, db, cfg)
            logger.info(f"Connected to MongoDB database {cfg.DATABASE_NAME}")
        yield
        if client is not None:
            client.close()
            logger.info("MongoDB connection closed")

    app = FastAPI(title=cfg.APP_NAME, lifespan=lifespan)
    app.state.settings = cfg
    app.state.database = None
    if database is not None:
        _attach_database(app, database, cfg)

    if cfg.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cfg.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or generate_request_id()
        set_request_id(request_id)
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"HTTP {request.method} {request.url.path} - {response.status_code} ({duration_ms:.2f}ms)",
            extra={"http_status": response.status_code, "duration_ms": round(duration_ms, 2)},
        )
        response.headers["X-Request-ID"] = request_id
        return response

    # Error handling

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        query = urlencode({"redirectTo": exc.redirect_to})
        return RedirectResponse(url=f"/login?{query}", status_code=303)

    @app.exception_handler(ChecklistError)
    async def checklist_error_handler(request: Request, exc: ChecklistError):
        if isinstance(exc, PersistenceFailure):
            logger.error(f"Persistence failure on {request.url.path}: {exc.message}")
        if wants_json(request):
            return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.to_dict()})
        title = "Not Found" if isinstance(exc, ReportNotFound) else "Something went wrong"
        return render(request, "error.html", {"title": title, "message": exc.message}, status_code=exc.status_code)

    # Routes

    @app.get("/")
    def read_root():
        return RedirectResponse(url="/dashboard", status_code=303)

    @app.get("/health")
    def health(request: Request):
        db = request.app.state.database
        connected = db is not None and ping(db)
        return {
            "status": "healthy",
            "database": "connected" if connected else "unavailable",
        }

    @app.get("/login", response_class=HTMLResponse)
    def login_form(request: Request, redirectTo: str = "", user: Optional[User] = Depends(optional_user)):
        if user is not None:
            return RedirectResponse(url="/dashboard", status_code=303)
        return render(request, "login.html", {"redirect_to": redirectTo, "name": "", "error": None})

    @app.post("/login")
    def login(
        request: Request,
        name: str = Form(""),
        redirectTo: str = Form(""),
        sessions: SessionGateway = Depends(get_sessions),
    ):
        if not name.strip():
            return render(
                request, "login.html",
                {"redirect_to": redirectTo, "name": name, "error": "Please enter your name"},
                status_code=400,
            )

        user_id = sessions.login(name)
        token = sessions.open_session(user_id)
        logger.info(f"Inspector {name!r} logged in", extra={"user_id": user_id})

        resp = RedirectResponse(url=safe_redirect_target(redirectTo), status_code=303)
        resp.set_cookie(
            cfg.SESSION_COOKIE_NAME,
            token,
            max_age=cfg.session_max_age_seconds,
            path="/",
            httponly=True,
            samesite="lax",
            secure=cfg.is_production,
        )
        return resp

    @app.post("/logout")
    def logout(request: Request, sessions: SessionGateway = Depends(get_sessions)):
        sessions.close_session(request.cookies.get(cfg.SESSION_COOKIE_NAME))
        resp = RedirectResponse(url="/login", status_code=303)
        resp.delete_cookie(cfg.SESSION_COOKIE_NAME, path="/")
        return resp

    @app.get("/dashboard")
    def dashboard(
        request: Request,
        q: str = "",
        user: User = Depends(require_user),
        reports: ReportRepository = Depends(get_reports),
    ):
        rows = build_rows(reports.list_all(), q)
        summary = summarize(rows)
        if wants_json(request):
            return {
                "inspections": [
                    {**row.report.model_dump(by_alias=True, mode="json"), "status": row.status.value}
                    for row in rows
                ],
                "summary": asdict(summary),
            }
        return render(request, "dashboard.html", {"user": user, "rows": rows, "summary": summary, "q": q})

    def render_form(request: Request, user: User, draft: ReportDraft, errors=None, message=None, status_code=200):
        return render(request, "new_inspection.html", {
            "user": user,
            "report": draft.report,
            "progress": draft.compute_progress(),
            "vehicle_registrations": cfg.vehicle_registrations,
            "section_titles": catalog.SECTION_TITLES,
            "errors": errors or set(),
            "message": message,
        }, status_code=status_code)

    @app.get("/inspection/new")
    def new_inspection(request: Request, user: User = Depends(require_user)):
        registrations = cfg.vehicle_registrations
        draft = ReportDraft.new(user.name, vehicle_reg=registrations[0] if registrations else "")
        return render_form(request, user, draft)

    @app.post("/inspection/new")
    async def submit_inspection(
        request: Request,
        user: User = Depends(require_user),
        reports: ReportRepository = Depends(get_reports),
    ):
        form = await request.form()
        raw = form.get("reportData")
        if raw is not None:
            draft = ReportDraft.from_json(raw, user.name)
        else:
            draft = ReportDraft.from_form({k: v for k, v in form.items() if isinstance(v, str)}, user.name)

        action = form.get("action") or "submit"
        if action in BULK_ACTIONS:
            section, status = BULK_ACTIONS[action]
            draft.mark_all(section, status)
            return render_form(request, user, draft)
        if action != "submit":
            raise MalformedSubmission(f"Unknown action: {action}")

        try:
            report = complete(draft.report)
        except ValidationFailure as e:
            logger.info(f"Rejected inspection from {user.name!r}: {e.count} problem(s)")
            if wants_json(request):
                return JSONResponse(status_code=e.status_code, content={
                    "success": False,
                    "error": e.message,
                    "errors": sorted(e.offending),
                    "count": e.count,
                })
            return render_form(request, user, draft, errors=e.offending, message=e.message, status_code=e.status_code)

        try:
            report_id = reports.create(report)
        except PersistenceFailure as e:
            if wants_json(request):
                return JSONResponse(status_code=e.status_code, content={"success": False, "error": e.message})
            return render_form(request, user, draft, message=e.message, status_code=e.status_code)

        if wants_json(request):
            return JSONResponse(status_code=201, content={"success": True, "id": report_id})
        return RedirectResponse(url="/dashboard", status_code=303)

    @app.get("/inspection/{report_id}")
    def view_inspection(
        request: Request,
        report_id: str,
        user: User = Depends(require_user),
        reports: ReportRepository = Depends(get_reports),
    ):
        report = reports.find_by_id(report_id)
        status = derive_status(report)
        if wants_json(request):
            return {**report.model_dump(by_alias=True, mode="json"), "status": status.value}
        return render(request, "view_inspection.html", {
            "user": user,
            "report": report,
            "status": status,
            "section_titles": catalog.SECTION_TITLES,
        })

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", default_settings.PORT))
    uvicorn.run(app, host="0.0.0.0", port=port)
