from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import time
import structlog

from ghostframe import config
from ghostframe.db import init_db
from ghostframe.routers import ai as ai_router
from ghostframe.routers import auth as auth_router
from ghostframe.routers import marketplace as marketplace_router
from ghostframe.routers import quiz as quiz_router
from ghostframe.routers import story as story_router
from ghostframe.routers import upload as upload_router
from ghostframe.services.logging import bind_request_context, configure_logging, log_api_request
from ghostframe.services.monitoring import health_checker, get_metrics, REQUEST_COUNT, REQUEST_DURATION
from ghostframe.middleware.rate_limit import limiter, rate_limit_exceeded_handler

BASE_DIR = Path(__file__).resolve().parent

# Configure logging
configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="GhostFrame",
    description="Modular AI content generation: quizzes and stories from study material",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
# applies the default limits to undecorated routes
app.add_middleware(SlowAPIMiddleware)

app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    request_id = bind_request_context(request)
    log_api_request(request)

    try:
        response = await call_next(request)
    except Exception as e:
        log_api_request(request, error=e)
        raise

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    response.headers["X-Request-ID"] = request_id

    # route template keeps ids out of the label set
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
    REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(process_time)

    log_api_request(request, response)
    return response


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return health_checker.get_health_status()


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Pages -----------------
@app.get("/", response_class=HTMLResponse)
def index(request: Request):
    return templates.TemplateResponse(request, "landing.html", {"title": "GhostFrame"})


@app.get("/marketplace", response_class=HTMLResponse)
def marketplace_page(request: Request):
    return templates.TemplateResponse(request, "marketplace.html", {"title": "Module Marketplace"})


@app.get("/quiz-ghost", response_class=HTMLResponse)
def quiz_page(request: Request):
    return templates.TemplateResponse(request, "quiz.html", {"title": "Quiz Ghost"})


@app.get("/story-spirit", response_class=HTMLResponse)
def story_page(request: Request):
    return templates.TemplateResponse(request, "story.html", {"title": "Story Spirit"})


# ----------------- Startup -----------------
@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("ghostframe_started", database=config.DATABASE_URL.split(":", 1)[0])


# ----------------- Routers -----------------
app.include_router(auth_router.router)
app.include_router(upload_router.router)
app.include_router(quiz_router.router)
app.include_router(story_router.router)
app.include_router(marketplace_router.router)
app.include_router(ai_router.router)
