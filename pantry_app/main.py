import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware

from pantry_app.config import settings
from pantry_app.core.events import data_changes
from pantry_app.core.rate_limit import limiter
from pantry_app.modules.auth import routes as auth_routes
from pantry_app.modules.users import routes as users_routes
from pantry_app.modules.households import routes as households_routes
from pantry_app.modules.shopping_lists import routes as shopping_lists_routes
from pantry_app.modules.inventory import routes as inventory_routes
from pantry_app.modules.pantries import routes as pantries_routes
from pantry_app.modules.categories import routes as categories_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

if settings.is_production and settings.session_secret == "dev-session-secret":
    raise RuntimeError("SESSION_SECRET environment variable is not set")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    session_cookie=settings.session_cookie_name,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.https_only,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Browser form endpoints (redirects) and session info
app.include_router(auth_routes.router)

# JSON API
app.include_router(users_routes.router, prefix="/api/v1")
app.include_router(households_routes.router, prefix="/api/v1")
app.include_router(shopping_lists_routes.router, prefix="/api/v1")
app.include_router(inventory_routes.router, prefix="/api/v1")
app.include_router(pantries_routes.router, prefix="/api/v1")
app.include_router(categories_routes.router, prefix="/api/v1")


def _log_data_change(scope: str) -> None:
    logger.debug("Data changed: %s", scope)


@app.on_event("startup")
async def startup_event():
    data_changes.subscribe(_log_data_change)
    logger.info("Application startup")


@app.on_event("shutdown")
async def shutdown_event():
    data_changes.unsubscribe(_log_data_change)
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to household-pantry", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: extend here with Supabase checks if needed."""
    return {"status": "ready"}
