import json
import logging
import time
from typing import Optional

import httpx
from fastapi import Request
from jose import JWTError, jwt

from domain.entities import User
from domain.errors import AuthProviderError
from infrastructure.config import Settings

logger = logging.getLogger(__name__)


def extract_token(request: Request) -> Optional[str]:
    """Pulls the bearer token from the Authorization header or the access_token cookie."""
    authorization = request.headers.get("authorization")
    if authorization and authorization.startswith("Bearer "):
        logger.debug("Token extracted from Authorization header")
        return authorization.split("Bearer ", 1)[1].strip() or None
    token = request.cookies.get("access_token")
    if token:
        logger.debug("Token extracted from cookie")
    return token or None


class AuthentikProvider:
    """Validates Authentik-issued JWTs against the issuer's JWKS.

    The key set is cached for ``settings.jwks_cache_ttl`` seconds. A token
    whose ``kid`` is missing from the cached set triggers one early refetch,
    at most every ``jwks_min_refresh`` seconds. Pass ``http_client`` to reuse
    a client (or to mock the provider in tests).
    """

    jwks_min_refresh = 30.0

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._http_client = http_client
        self._jwks: Optional[dict] = None
        self._jwks_expiry = 0.0
        self._jwks_fetched_at = 0.0

    async def _fetch_jwks(self) -> dict:
        url = self.settings.jwks_url
        logger.debug(f"Fetching JWKS from {url}")
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url)
            else:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    response = await client.get(url)
            response.raise_for_status()
            jwks = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to get JWKS (HTTP error): {e.response.status_code}")
            raise AuthProviderError(f"JWKS endpoint returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Failed to get JWKS (request error): {e}")
            raise AuthProviderError(str(e)) from e
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JWKS: {e}")
            raise AuthProviderError("JWKS response is not JSON") from e

        if not isinstance(jwks, dict) or "keys" not in jwks:
            logger.error(f"Invalid JWKS format: {jwks}")
            raise AuthProviderError("Invalid JWKS format from provider")
        logger.debug(f"JWKS fetched successfully with {len(jwks['keys'])} keys")
        return jwks

    async def get_jwks(self, refresh: bool = False) -> dict:
        now = time.time()
        if not refresh and self._jwks is not None and now < self._jwks_expiry:
            logger.debug("Using cached JWKS")
            return self._jwks
        self._jwks = await self._fetch_jwks()
        self._jwks_fetched_at = now
        self._jwks_expiry = now + self.settings.jwks_cache_ttl
        return self._jwks

    def _has_unknown_kid(self, token: str, jwks: dict) -> bool:
        try:
            kid = jwt.get_unverified_header(token).get("kid")
        except JWTError:
            return False
        if not kid:
            return False
        return kid not in {key.get("kid") for key in jwks.get("keys", []) if isinstance(key, dict)}

    async def _jwks_for(self, token: str) -> dict:
        """Key set for ``token``, refetched once when it names a key we have not seen."""
        jwks = await self.get_jwks()
        if self._has_unknown_kid(token, jwks):
            if time.time() - self._jwks_fetched_at >= self.jwks_min_refresh:
                logger.info("Token signed with an unknown key id, refreshing JWKS")
                jwks = await self.get_jwks(refresh=True)
        return jwks

    def decode(self, token: str, jwks: dict) -> dict:
        issuer = self.settings.authentik_issuer
        options = {"leeway": 30}
        kwargs = {}
        if self.settings.client_id:
            kwargs["audience"] = self.settings.client_id
        else:
            options["verify_aud"] = False
        return jwt.decode(
            token,
            jwks,
            algorithms=list(self.settings.auth_algorithms),
            issuer=[issuer, issuer.rstrip("/")],
            options=options,
            **kwargs,
        )

    async def get_current_user(self, request: Request) -> Optional[User]:
        token = extract_token(request)
        if not token:
            return None
        jwks = await self._jwks_for(token)
        try:
            payload = self.decode(token, jwks)
        except JWTError as e:
            logger.warning(f"JWT validation failed: {e}")
            return None
        subject = payload.get("sub")
        if not subject:
            logger.warning("Token has no subject claim")
            return None
        return User(id=str(subject), email=payload.get("email"))
