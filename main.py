import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from llamaio.config.settings import settings
from llamaio.database import Base, engine
from llamaio.routers import task, user
from llamaio.services.reconciler import ReferenceReconciler
from llamaio.utils.errors import ApiError
from llamaio.utils.responses import send

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Llama.io API")

reconciler = ReferenceReconciler(settings.RECONCILE_INTERVAL_MINUTES)

ENDPOINTS = [
    "GET/POST /users",
    "GET/PUT/DELETE /users/:id",
    "GET/POST /tasks",
    "GET/PUT/DELETE /tasks/:id",
]

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Route registration
app.include_router(user.router)
app.include_router(task.router)


# Every error leaves as {"message": ..., "data": ...}
@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return send(exc.status_code, exc.message, exc.data)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return send(exc.status_code, str(exc.detail), {})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = [str(part) for part in first.get("loc", ()) if part != "body"]
        if first.get("type") == "json_invalid":
            message = "Invalid JSON body"
        elif location:
            message = f'Invalid value for "{".".join(location)}": {first.get("msg")}'
        else:
            message = f"Invalid request body: {first.get('msg')}"
    return send(status.HTTP_400_BAD_REQUEST, message, {})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return send(status.HTTP_500_INTERNAL_SERVER_ERROR, "Unexpected server error.", {})


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Create missing tables and start the reconciler schedule"""
    logger.info("Starting Llama.io API...")
    Base.metadata.create_all(bind=engine)
    reconciler.start()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Llama.io API...")
    reconciler.stop()


# Root route
@app.get("/")
def read_root():
    return send(status.HTTP_200_OK, "Llama.io API is running", {"endpoints": ENDPOINTS})


@app.get("/health")
def health():
    return send(status.HTTP_200_OK, "OK", {"status": "ok"})


@app.get("/scheduler/status")
def get_scheduler_status():
    """Reconciler schedule and last run"""
    return send(status.HTTP_200_OK, "Scheduler status", reconciler.status())


@app.post("/scheduler/trigger/reconcile")
def trigger_reconcile():
    """Run the reference reconciler now"""
    result = reconciler.run_once()
    return send(status.HTTP_200_OK, "Reconciliation completed", result)
