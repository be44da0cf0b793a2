from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware.exception_handlers import register_exception_handlers
from api.middleware.request_context import RequestContextMiddleware
from api.routes.v1 import router as v1_router
from core.chatkit_token import ChatKitTokenCodec
from core.constants import CLIENT_SECRET_HEADER, DEVELOPMENT_SIGNING_SECRET, Settings, get_settings
from utils.logger import configure_uvicorn_logging, logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown logging."""
    settings: Settings = app.state.settings
    codec: ChatKitTokenCodec = app.state.token_codec

    if settings.chatkit_signing_secret == DEVELOPMENT_SIGNING_SECRET:
        logger.warning("Using the development ChatKit signing secret; set CHATKIT_SIGNING_SECRET")
    logger.info(
        f"ChatKit gateway starting: app_env={settings.app_env}, "
        f"token_validity_ms={codec.validity_ms}, expiry_warning_ms={codec.expiry_warning_ms}"
    )

    try:
        yield
    finally:
        logger.info("ChatKit gateway shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    The signing secret is read from settings once, here, and injected into
    the codec stored on ``app.state``.
    """
    settings = settings or get_settings()
    logger.configure(debug=settings.debug, log_dir=settings.log_path)

    app = FastAPI(
        title="ChatKit Auth Gateway",
        description="""
## ChatKit Auth Gateway

Issues and validates the client secrets that authorize the ChatKit frontend.

### Authentication
Every ChatKit endpoint requires the identity provider session token as a
Bearer token. Follow-up calls additionally send the client secret in the
`X-ChatKit-Client-Secret` header.

### Versioning
API uses URL path versioning: `/api/v1/...`
""",
        version=settings.app_version,
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "Health",
                "description": "Health check endpoints for monitoring and orchestration",
            },
            {
                "name": "ChatKit",
                "description": "Client secret issuance, refresh and verification",
            },
        ],
        openapi_url="/api/v1/openapi.json",
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
    )

    app.state.settings = settings
    app.state.token_codec = ChatKitTokenCodec.from_settings(settings)

    register_exception_handlers(app)

    # Middleware executes in reverse order of registration
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", CLIENT_SECRET_HEADER, "X-Request-ID"],
    )

    app.include_router(v1_router, prefix="/api/v1")
    return app


# Configure uvicorn logging at module level to ensure workers use it
configure_uvicorn_logging()

app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=_settings.api_host,
        port=_settings.api_port,
        reload=_settings.is_development,
        reload_dirs=["src"],
        log_config=None,
    )
