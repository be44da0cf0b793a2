from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from api.services.chatkit_session_service import ChatKitSessionService
from core.chatkit_token import ChatKitTokenCodec
from core.constants import Settings, get_settings


def get_app_settings() -> Settings:
    """Provide application settings via dependency injection.

    Settings are validated at startup and cached. In development with
    CONFIG_HOT_RELOAD=true, settings are reloaded on each request.

    Usage in routes:
        @router.get("/example")
        async def example(settings: AppSettings):
            return {"debug": settings.debug}
    """
    return get_settings()


def get_token_codec(request: Request) -> ChatKitTokenCodec:
    """Get the client secret codec created at startup from application state."""
    return request.app.state.token_codec


def get_chatkit_service(codec: Annotated[ChatKitTokenCodec, Depends(get_token_codec)]) -> ChatKitSessionService:
    """Provide the ChatKit session service bound to the application codec."""
    return ChatKitSessionService(codec)


# Type aliases for cleaner route signatures
AppSettings = Annotated[Settings, Depends(get_app_settings)]
TokenCodec = Annotated[ChatKitTokenCodec, Depends(get_token_codec)]
ChatKitSessions = Annotated[ChatKitSessionService, Depends(get_chatkit_service)]
