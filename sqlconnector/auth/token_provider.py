# auth/token_provider.py
# ─────────────────────────────────────────────────────────────────────────────
# Handles Azure AD token acquisition for SQL access.
#
# Client credentials only: the app registration (tenant / client id / secret)
# acquires a token for itself as a service principal.
#
# Public API:
#   get_token_provider(client_id, client_secret, tenant_id) -> Callable[[], AccessToken]
#
#   The returned callable performs exactly one acquisition per invocation;
#   caching is TokenCache's job, not this module's.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import base64
import json
import logging
from datetime import datetime, timedelta
from typing import Callable, Sequence

import msal
import requests

from ..config import DEFAULT_AUTHORITY_HOST
from ..errors import AuthError
from ..models import AccessToken, utc_now

log = logging.getLogger(__name__)

SQL_SCOPE = ["https://database.windows.net//.default"]


# ─── MSAL client factory ─────────────────────────────────────────────────────

def _build_confidential_client(
    client_id: str,
    client_secret: str,
    tenant_id: str,
    authority_host: str,
) -> msal.ConfidentialClientApplication:
    return msal.ConfidentialClientApplication(
        client_id=client_id,
        client_credential=client_secret,
        authority=f"{authority_host.rstrip('/')}/{tenant_id}",
    )


# ─── Token flow ──────────────────────────────────────────────────────────────

def _token_to_result(msal_result: dict, now: datetime) -> AccessToken:
    """Normalise an MSAL result into an AccessToken with an absolute expiry."""
    expires_in = float(msal_result.get("expires_in", 0))
    return AccessToken(
        value=msal_result["access_token"],
        expires_at=now + timedelta(seconds=expires_in),
    )


def _client_credentials_token(
    app: msal.ConfidentialClientApplication,
    scopes: Sequence[str],
    now: datetime,
) -> AccessToken:
    """Acquire a token as the service principal."""
    result = app.acquire_token_for_client(scopes=list(scopes))

    if not result or "access_token" not in result:
        result = result or {}
        raise AuthError(
            f"Client-credentials token acquisition failed: "
            f"{result.get('error')} – {result.get('error_description')}"
        )

    _log_token_identity(result["access_token"], flow="client_credentials")
    return _token_to_result(result, now)


# ─── Debug helper ─────────────────────────────────────────────────────────────

def _log_token_identity(access_token: str, *, flow: str) -> None:
    """Log the JWT identity claims at debug level.  Never logs the token."""
    if not log.isEnabledFor(logging.DEBUG):
        return
    try:
        payload_b64 = access_token.split(".")[1]
        payload_b64 += "=" * (-len(payload_b64) % 4)
        claims = json.loads(base64.urlsafe_b64decode(payload_b64))
    except (IndexError, ValueError):
        log.debug("[%s] Could not decode token claims.", flow)
        return
    identity = claims.get("app_displayname") or claims.get("appid", "unknown")
    log.debug("[%s] SQL token identity: %s (oid=%s)", flow, identity, claims.get("oid"))


# ─── Public factory ───────────────────────────────────────────────────────────

def get_token_provider(
    client_id: str,
    client_secret: str,
    tenant_id: str,
    *,
    authority_host: str = DEFAULT_AUTHORITY_HOST,
    scopes: Sequence[str] = SQL_SCOPE,
    clock: Callable[[], datetime] = utc_now,
) -> Callable[[], AccessToken]:
    """
    Return a zero-argument callable that acquires a fresh SQL access token.

    The MSAL application is built on the first call (its construction talks
    to the authority) and reused afterwards.  Every failure surfaces as
    AuthError; nothing is retried here.
    """
    apps: list[msal.ConfidentialClientApplication] = []

    def _provide() -> AccessToken:
        now = clock()
        try:
            if not apps:
                apps.append(
                    _build_confidential_client(client_id, client_secret, tenant_id, authority_host)
                )
            return _client_credentials_token(apps[0], scopes, now)
        except (requests.RequestException, ValueError) as exc:
            raise AuthError(f"Token request to tenant {tenant_id} failed: {exc}") from exc

    return _provide
