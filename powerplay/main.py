import asyncio
import logging
from pathlib import Path
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from powerplay.config import settings
from powerplay.core.middleware import SecurityHeadersMiddleware, LocaleMiddleware
from powerplay.modules.auth import routes as auth_routes
from powerplay.modules.profiles import routes as profiles_routes
from powerplay.modules.clubs import routes as clubs_routes
from powerplay.modules.rinks import routes as rinks_routes
from powerplay.modules.matches import routes as matches_routes
from powerplay.modules.points import routes as points_routes
from powerplay.modules.superuser import routes as superuser_routes
from powerplay.modules.chat import routes as chat_routes
from powerplay.modules.chat.realtime import get_chat_manager
from powerplay.modules.push import routes as push_routes
from powerplay.modules.i18n import routes as i18n_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"
SOCKET_CLEANUP_INTERVAL_SECONDS = 60

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Added last so it runs first: routes never see the /ko or /en prefix
app.add_middleware(LocaleMiddleware)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.router, prefix="/api/v1")
app.include_router(clubs_routes.router, prefix="/api/v1")
app.include_router(rinks_routes.router, prefix="/api/v1")
app.include_router(matches_routes.router, prefix="/api/v1")
app.include_router(points_routes.router, prefix="/api/v1")
app.include_router(superuser_routes.router, prefix="/api/v1")
app.include_router(chat_routes.router, prefix="/api/v1")
app.include_router(push_routes.router, prefix="/api/v1")
app.include_router(i18n_routes.router, prefix="/api/v1")


async def socket_cleanup_loop():
    manager = get_chat_manager()
    while True:
        await asyncio.sleep(SOCKET_CLEANUP_INTERVAL_SECONDS)
        try:
            await manager.cleanup_stale_connections()
        except Exception as e:
            logger.error(f"Chat socket cleanup failed: {e}")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")
    if not settings.vapid_configured:
        logger.warning("VAPID keys not configured - push notifications will be logged as failed")
    app.state.socket_cleanup = asyncio.create_task(socket_cleanup_loop())
    logger.info(f"Chat socket cleanup started - runs every {SOCKET_CLEANUP_INTERVAL_SECONDS}s")


@app.on_event("shutdown")
async def shutdown_event():
    task = getattr(app.state, "socket_cleanup", None)
    if task:
        task.cancel()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to powerplay", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe"""
    return {"status": "ready"}


@app.get("/sw.js", include_in_schema=False)
@limiter.exempt
async def service_worker():
    """Push service worker, served from the root so it controls the whole site"""
    return FileResponse(
        STATIC_DIR / "sw.js",
        media_type="application/javascript",
        headers={"Service-Worker-Allowed": "/", "Cache-Control": "no-cache"}
    )
