"""Afya Link — FastAPI Gateway

API endpoints:
  /                 — Health check
  /login            — Supabase email/password sign in
  /signup           — Supabase email/password sign up
  /check_symptom    — Offline symptom lookup
  /ai_advice        — Gemini advice for a symptom
  /history/{email}  — Lookup history for a user, newest first
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from afya.core.config import AppConfig, get_config
from afya.core.clients import ProviderError, SupabaseStore
from afya.core.history import mask_email, save_history
from afya.core.models import Credentials, SymptomQuery, SymptomRecord
from afya.layers.inference import GeminiClient
from afya.layers.offline import SymptomTable, normalize_symptom

logger = structlog.get_logger()

MAX_BODY_BYTES = 1024 * 1024


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status)


def unknown_symptom(symptom: str) -> SymptomRecord:
    return SymptomRecord(
        description=f"We could not recognize '{symptom}' as a known symptom.",
        causes=["Unknown"],
        remedies=["Please enter a correct symptom for accurate offline guidance, or use AI Advice."],
    )


def create_app(
    config: AppConfig = None,
    store=None,
    symptoms: SymptomTable = None,
    gemini: GeminiClient = None,
) -> FastAPI:
    """Build the app. Anything not passed in is built from config at startup."""
    config = config or get_config()

    app = FastAPI(title="Afya Link", description="Symptom checker API", docs_url="/docs")

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > MAX_BODY_BYTES:
            logger.warning("request_too_large", path=request.url.path, size=int(length))
            return _error(413, "Request body too large (max 1MB).")
        return await call_next(request)

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    app.state.config = config
    app.state.store = store
    app.state.symptoms = symptoms if symptoms is not None else SymptomTable.load(config.symptoms_path)
    app.state.gemini = gemini or GeminiClient(config.gemini)

    if not app.state.gemini.enabled:
        logger.warning("gemini_key_missing", detail="GEMINI_API_KEY (or GEMINI_KEY) is not set. /ai_advice will return an error.")

    @app.on_event("startup")
    async def startup():
        if app.state.store is None:
            app.state.store = await SupabaseStore.connect(config)
        logger.info("gateway_started", port=config.port, symptoms=len(app.state.symptoms))

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "body"
        return _error(400, f"Invalid request: {field}: {first.get('msg', 'invalid value')}")

    register_routes(app)
    return app


def register_routes(app: FastAPI):

    @app.get("/")
    def health():
        return {"message": "Afya Link API running ✅ (Python)"}

    # ── Auth ──────────────────────────────────────────────────────────

    @app.post("/login")
    async def login(body: Credentials, request: Request):
        if not body.email or not body.password:
            return _error(400, "Email and password are required.")
        try:
            user = await request.app.state.store.sign_in(body.email, body.password)
        except ProviderError as e:
            logger.info("login_failed", email=mask_email(body.email), error=e.message)
            return _error(400, e.message)
        return {"status": "success", "user": user}

    @app.post("/signup")
    async def signup(body: Credentials, request: Request):
        if not body.email or not body.password:
            return _error(400, "Email and password are required.")
        try:
            user = await request.app.state.store.sign_up(body.email, body.password)
        except ProviderError as e:
            logger.info("signup_failed", email=mask_email(body.email), error=e.message)
            return _error(400, e.message)
        return {"status": "success", "user": user}

    # ── Symptoms ──────────────────────────────────────────────────────

    @app.post("/check_symptom")
    async def check_symptom(body: SymptomQuery, request: Request):
        """Offline lookup. Unknown symptoms get a canned record, not an error."""
        state = request.app.state
        symptom = normalize_symptom(body.symptom)
        if not symptom:
            return _error(400, "No symptom provided.")

        result = state.symptoms.lookup(symptom)
        if result:
            await save_history(state.store, body.email, symptom, result, "offline")
            return {"source": "offline", "result": result.model_dump()}

        unknown = unknown_symptom(symptom)
        await save_history(state.store, body.email, symptom, unknown, "offline_unknown")
        return {
            "source": "not_found",
            "result": unknown.model_dump(),
            "message": f"'{symptom}' is not recognized as a known symptom. Enter a correct symptom or try AI Advice.",
        }

    @app.post("/ai_advice")
    async def ai_advice(body: SymptomQuery, request: Request):
        state = request.app.state
        symptom = (body.symptom or "").strip()
        if not symptom:
            return _error(400, "No symptom provided.")
        if not state.gemini.enabled:
            return _error(500, "AI advice failed: Gemini API key is not configured on the server.")

        try:
            result = await state.gemini.advise(symptom)
        except Exception as e:
            logger.error("ai_advice_failed", symptom=symptom[:50], error=str(e))
            return _error(500, f"AI advice failed: {e}")

        await save_history(state.store, body.email, symptom, result, "ai")
        return {"source": "ai", "result": result.model_dump()}

    # ── History ───────────────────────────────────────────────────────

    @app.get("/history/{email}")
    async def history(email: str, request: Request):
        if not email:
            return _error(400, "Email is required.")
        try:
            rows = await request.app.state.store.list_history(email)
        except ProviderError as e:
            logger.error("history_fetch_failed", email=mask_email(email), error=e.message)
            return _error(500, e.message)
        return {"history": rows}
