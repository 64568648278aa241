"""
Request authentication. The API depends only on AuthContext; which strategy
backs it is a deployment choice made in config.
"""
import logging
from typing import Protocol

from fastapi import HTTPException, Request

from .config import Settings

logger = logging.getLogger(__name__)


class AuthContext(Protocol):
    def resolve_user_id(self, request: Request) -> str:
        ...


class BearerAuth:
    """The bearer token is the user's id, as issued by the identity provider."""

    def resolve_user_id(self, request: Request) -> str:
        authorization = request.headers.get("authorization", "")
        if not authorization.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Missing Bearer token")
        user_id = authorization.removeprefix("Bearer ").strip()
        if not user_id or len(user_id) > 200:
            raise HTTPException(status_code=401, detail="Invalid Bearer token")
        return user_id


class DevAuth:
    """Every request acts as one fixed user. Local development only."""

    def __init__(self, user_id: str):
        self.user_id = user_id

    def resolve_user_id(self, request: Request) -> str:
        return self.user_id


def build_auth(settings: Settings) -> AuthContext:
    if settings.auth_mode == "dev":
        logger.warning("Dev auth enabled: all requests act as %s", settings.dev_user_id)
        return DevAuth(settings.dev_user_id)
    if settings.auth_mode != "bearer":
        raise ValueError(f"Unknown auth mode: {settings.auth_mode}")
    return BearerAuth()
