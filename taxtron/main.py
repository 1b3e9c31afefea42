# taxtron/main.py
"""
FastAPI application entry point.
Includes request logging middleware, global error handlers, and all routers.
Every error leaves the API as {"success": false, "message": ...}.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from taxtron.routers import ownership_transfer, admin_transfers, health
from taxtron.database import create_tables
from taxtron.exceptions import TransferError
from taxtron.config import settings
from taxtron.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="TaxTron Ownership Transfer API",
    description="Vehicle ownership transfer workflow: search, initiate, admin review, complete, history.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (frontend calls the API directly) ──────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


# ── Domain Errors ────────────────────────────────────────────────────────────
@app.exception_handler(TransferError)
async def transfer_error_handler(request: Request, exc: TransferError):
    logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid request: {field} {first.get('msg', '')}".strip()
    return _error(status.HTTP_400_BAD_REQUEST, message)


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(ownership_transfer.router, prefix="/api/ownership-transfer", tags=["🚗 Ownership Transfer"])
app.include_router(admin_transfers.router,    prefix="/api/ownership-transfer", tags=["🛡️  Transfer Review (Admin)"])
app.include_router(health.router,             prefix="/api",                    tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 TaxTron transfer backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🌐 Listening on http://{settings.API_HOST}:{settings.API_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 TaxTron transfer backend shutting down...")
