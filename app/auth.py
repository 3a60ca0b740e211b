import json
import logging
import httpx, jwt
from dataclasses import dataclass
from typing import Dict, Any, Optional
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

from .config import settings

logger = logging.getLogger(__name__)
_JWKS: Optional[Dict[str, Any]] = None
_JWKS_FETCHED_AT: Optional[datetime] = None
_JWKS_TTL = timedelta(minutes=10)  # simple refresh window


class AuthError(Exception):
    """A session token could not be verified."""

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)
        self.detail = detail


def _iss() -> str:
    """Return the Supabase issuer (…/auth/v1) derived from the JWKS URL."""
    url = settings.SUPABASE_JWKS_URL
    marker = "/auth/v1"
    if marker in url:
        base = url.split(marker, 1)[0]
        return f"{base}{marker}"
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"

async def _fetch_jwks() -> Dict[str, Any]:
    logger.debug("Fetching Supabase JWKS from %s", settings.SUPABASE_JWKS_URL)
    async with httpx.AsyncClient(timeout=10) as client:
        headers = {"apikey": settings.SUPABASE_ANON_KEY}
        r = await client.get(settings.SUPABASE_JWKS_URL, headers=headers)
        r.raise_for_status()
        data = r.json()
    logger.debug("Fetched Supabase JWKS payload (%d keys)", len(data.get("keys", [])))
    return data

async def get_jwks(force: bool = False) -> Dict[str, Any]:
    global _JWKS, _JWKS_FETCHED_AT
    needs_refresh = (
        force
        or _JWKS is None
        or _JWKS_FETCHED_AT is None
        or (datetime.now(timezone.utc) - _JWKS_FETCHED_AT) > _JWKS_TTL
    )
    if needs_refresh:
        logger.info("Refreshing Supabase JWKS cache (force=%s)", force)
        _JWKS = await _fetch_jwks()
        _JWKS_FETCHED_AT = datetime.now(timezone.utc)
    else:
        age = (datetime.now(timezone.utc) - _JWKS_FETCHED_AT).total_seconds() if _JWKS_FETCHED_AT else 0.0
        logger.debug("Using cached Supabase JWKS (age=%.1fs)", age)
    return _JWKS

def _public_key_from_kid(jwks: Dict[str, Any], kid: str) -> tuple[Optional[Any], Optional[str]]:
    key = next((k for k in jwks.get("keys", []) if k.get("kid") == kid), None)
    if not key:
        logger.warning("JWKS key not found for kid=%s", kid)
        return None, None

    alg = key.get("alg")
    if not alg:
        kty = key.get("kty")
        if kty == "RSA":
            alg = "RS256"
        elif kty == "EC":
            alg = "ES256"

    if not alg:
        logger.warning("Unable to infer JWT algorithm for kid=%s", kid)
        return None, None

    algorithm = jwt.algorithms.get_default_algorithms().get(alg)
    if not algorithm:
        logger.warning("Unsupported JWT algorithm '%s' for kid=%s", alg, kid)
        return None, None

    logger.debug("Resolved JWKS key for kid=%s using alg=%s", kid, alg)
    return algorithm.from_jwk(json.dumps(key)), alg

def _decode(token: str, key: Any, alg: str) -> Dict[str, Any]:
    # exp/nbf/signature are on by default; aud is off, iss must match the project
    try:
        return jwt.decode(
            token,
            key,
            algorithms=[alg],
            issuer=_iss(),
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except Exception:
        raise AuthError()

async def _jwks_key(kid: Optional[str], force: bool = False) -> tuple[Optional[Any], Optional[str]]:
    jwks = await get_jwks(force=force)
    return _public_key_from_kid(jwks, kid or "")

async def verify_token(token: str) -> Dict[str, Any]:
    """Verify a Supabase access token and return its claims (``sub``, ``email``, ...)."""
    try:
        unverified_header = jwt.get_unverified_header(token)
        kid = unverified_header.get("kid")
        alg = unverified_header.get("alg")
        logger.debug("Parsed Supabase JWT header kid=%s alg=%s", kid, alg)
    except Exception:
        logger.warning("Failed to parse Supabase JWT header")
        raise AuthError()

    if alg and alg.startswith("HS"):
        # Supabase default access tokens are signed with the JWT secret using HS256.
        secret = settings.SUPABASE_JWT_SECRET
        if not secret:
            logger.error("SUPABASE_JWT_SECRET is not configured but HS-signed token was provided")
            raise AuthError()
        try:
            payload = _decode(token, secret, alg)
        except AuthError as exc:
            logger.warning("Supabase JWT rejected using HS secret: %s", exc.detail)
            raise
        logger.debug("Supabase JWT validated for subject=%s", payload.get("sub"))
        return payload

    # one forced JWKS refresh is allowed, on a key miss or a failed signature (rotation)
    refreshed = False
    public_key, key_alg = await _jwks_key(kid)
    while True:
        if public_key is None or key_alg is None:
            if refreshed:
                logger.error("Unable to resolve JWKS key for kid=%s after refresh", kid)
                raise AuthError()
            logger.info("JWKS cache miss for kid=%s; forcing refresh", kid)
        else:
            try:
                payload = _decode(token, public_key, key_alg)
            except AuthError as exc:
                if refreshed or exc.detail == "Token expired":
                    logger.warning("Supabase JWT rejected for kid=%s: %s", kid, exc.detail)
                    raise
                logger.warning("Supabase JWT verification failed for kid=%s; retrying with forced JWKS refresh", kid)
            else:
                logger.debug("Supabase JWT validated for subject=%s", payload.get("sub"))
                return payload
        public_key, key_alg = await _jwks_key(kid, force=True)
        refreshed = True


@dataclass(frozen=True)
class AuthDecision:
    allowed: bool
    redirect_to: Optional[str] = None


class AuthPolicy:
    """Who may see which page.

    Dashboard pages need a signed-in user; everyone else is sent to the login
    page. A signed-in user landing on any other page is sent to the dashboard.
    """

    def __init__(self, dashboard_path: str, login_path: str):
        self.dashboard_path = dashboard_path.rstrip("/") or "/"
        self.login_path = login_path

    def _on_dashboard(self, path: str) -> bool:
        return path == self.dashboard_path or path.startswith(self.dashboard_path + "/")

    def authorize(self, user: Optional[Dict[str, Any]], path: str) -> AuthDecision:
        signed_in = bool(user and user.get("sub"))
        if self._on_dashboard(path):
            if signed_in:
                return AuthDecision(allowed=True)
            return AuthDecision(allowed=False, redirect_to=self.login_path)
        if signed_in:
            return AuthDecision(allowed=False, redirect_to=self.dashboard_path)
        return AuthDecision(allowed=True)


def default_policy() -> AuthPolicy:
    return AuthPolicy(settings.DASHBOARD_PATH, settings.LOGIN_PATH)
