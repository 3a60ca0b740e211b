# app/middleware.py
"""Authentication gate in front of every page and form action."""

import logging
import re
from typing import Optional

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .auth import AuthError, AuthPolicy, default_policy, verify_token
from .config import settings

logger = logging.getLogger(__name__)

# api routes, framework static/image assets and png files are never gated
_UNGATED = re.compile(r"^/(?:api(?:/|$)|_next/static/|_next/image/|.*\.png$)")


def should_gate(path: str) -> bool:
    return _UNGATED.match(path) is None


def _token_from(request: Request, cookie_name: str) -> Optional[str]:
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(cookie_name) or None


class AuthGateMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, policy: Optional[AuthPolicy] = None, cookie_name: Optional[str] = None):
        super().__init__(app)
        self.policy = policy or default_policy()
        self.cookie_name = cookie_name or settings.SESSION_COOKIE

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not should_gate(path):
            return await call_next(request)

        user = None
        token = _token_from(request, self.cookie_name)
        if token:
            try:
                user = await verify_token(token)
            except AuthError as exc:
                logger.info("Rejected session token on %s: %s", path, exc.detail)
        request.state.user = user

        decision = self.policy.authorize(user, path)
        if decision.allowed:
            return await call_next(request)
        logger.debug("Auth gate redirecting %s -> %s", path, decision.redirect_to)
        return RedirectResponse(url=decision.redirect_to, status_code=status.HTTP_303_SEE_OTHER)


__all__ = ["AuthGateMiddleware", "should_gate"]
