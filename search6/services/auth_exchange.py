"""
search6.services.auth_exchange — Discord OAuth2 with PKCE
===========================================================

Lets a visitor prove which Discord account they own so the site can look
up "their" card.  Only the ``identify`` scope is requested, and the token is
revoked as soon as the account id is known.

Flow::

    begin_login()                      complete_login(code, state)
    ─────────────                      ───────────────────────────
    verifier, challenge = PKCE pair    verifier = states.take(state)  → InvalidState
    csrf = random token                POST /oauth2/token (code + verifier)
    states.put(csrf, verifier)             → CodeExchangeFailed
    → authorize URL (state=csrf)       GET /users/@me  → IdentityFetchFailed
                                       revoke tokens (background, errors ignored)
                                       → account id
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import logging
import os
import secrets
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from search6.database.engine import run_db
from search6.errors import CodeExchangeFailed, IdentityFetchFailed, InvalidState
from search6.services.oauth_state import OAuthStateStore

logger = logging.getLogger(__name__)

DISCORD_AUTHORIZE_URL = "https://discord.com/oauth2/authorize"
DISCORD_TOKEN_URL = "https://discord.com/api/oauth2/token"
DISCORD_REVOKE_URL = "https://discord.com/api/oauth2/token/revoke"
DISCORD_API = "https://discord.com/api/v10"

OAUTH_SCOPE = "identify"


@dataclass(frozen=True, slots=True)
class OAuthCredentials:
    client_id: str
    client_secret: str
    redirect_uri: str


def oauth_credentials(root_url: str) -> OAuthCredentials | None:
    """Read client credentials from the environment.

    Returns ``None`` (login disabled) if either the client id or secret is
    missing.  The redirect URI defaults to ``<root_url>/oc``.
    """
    client_id = os.getenv("DISCORD_CLIENT_ID", "").strip()
    client_secret = os.getenv("DISCORD_CLIENT_SECRET", "").strip()
    if not client_id or not client_secret:
        return None
    redirect_uri = os.getenv("DISCORD_REDIRECT_URI", "").strip() or f"{root_url}/oc"
    return OAuthCredentials(client_id, client_secret, redirect_uri)


def new_pkce_pair() -> tuple[str, str]:
    """Return ``(verifier, S256 challenge)``."""
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


class AuthExchange:
    """Authorization-code + PKCE login against Discord."""

    def __init__(
        self,
        credentials: OAuthCredentials,
        states: OAuthStateStore,
        http: httpx.AsyncClient,
    ) -> None:
        self.credentials = credentials
        self.states = states
        self.http = http
        self._revocations: set[asyncio.Task] = set()

    @property
    def _client_auth(self) -> tuple[str, str]:
        return self.credentials.client_id, self.credentials.client_secret

    async def begin_login(self) -> str:
        """Issue a CSRF state, park its PKCE verifier, return the authorize URL."""
        verifier, challenge = new_pkce_pair()
        state = secrets.token_urlsafe(32)
        await run_db(self.states.put, state, verifier)

        query = urlencode(
            {
                "client_id": self.credentials.client_id,
                "redirect_uri": self.credentials.redirect_uri,
                "response_type": "code",
                "scope": OAUTH_SCOPE,
                "state": state,
                "code_challenge": challenge,
                "code_challenge_method": "S256",
            }
        )
        return f"{DISCORD_AUTHORIZE_URL}?{query}"

    async def complete_login(self, code: str, state: str) -> int:
        """Redeem *code* for the caller's Discord account id.

        Raises
        ------
        InvalidState
            *state* is unknown, expired or already used.
        CodeExchangeFailed
            Discord rejected the code / verifier, or the call failed.
        IdentityFetchFailed
            The token worked but ``/users/@me`` did not.
        """
        verifier = await run_db(self.states.take, state)
        if verifier is None:
            raise InvalidState()

        tokens = await self._exchange_code(code, verifier)
        try:
            return await self._fetch_account_id(tokens["access_token"])
        finally:
            self._schedule_revocation(tokens)

    # -------------------------------------------------------------------
    # Discord calls
    # -------------------------------------------------------------------
    async def _exchange_code(self, code: str, verifier: str) -> dict:
        try:
            resp = await self.http.post(
                DISCORD_TOKEN_URL,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.credentials.redirect_uri,
                    "code_verifier": verifier,
                },
                auth=self._client_auth,
            )
        except httpx.HTTPError as exc:
            raise CodeExchangeFailed() from exc

        if resp.status_code != 200:
            logger.info("OAuth token exchange rejected: HTTP %d", resp.status_code)
            raise CodeExchangeFailed()
        try:
            payload = resp.json()
        except ValueError as exc:
            raise CodeExchangeFailed() from exc
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise CodeExchangeFailed()
        return payload

    async def _fetch_account_id(self, access_token: str) -> int:
        try:
            resp = await self.http.get(
                f"{DISCORD_API}/users/@me",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as exc:
            raise IdentityFetchFailed() from exc
        if resp.status_code != 200:
            raise IdentityFetchFailed()
        try:
            return int(resp.json()["id"])
        except (ValueError, KeyError, TypeError) as exc:
            raise IdentityFetchFailed() from exc

    # -------------------------------------------------------------------
    # Revocation (fire-and-forget)
    # -------------------------------------------------------------------
    def _schedule_revocation(self, tokens: dict) -> None:
        task = asyncio.get_running_loop().create_task(
            self._revoke(tokens), name="oauth-revoke"
        )
        self._revocations.add(task)
        task.add_done_callback(self._revocations.discard)

    async def _revoke(self, tokens: dict) -> None:
        for hint in ("refresh_token", "access_token"):
            token = tokens.get(hint)
            if not token:
                continue
            try:
                await self.http.post(
                    DISCORD_REVOKE_URL,
                    data={"token": token, "token_type_hint": hint},
                    auth=self._client_auth,
                )
            except httpx.HTTPError:
                logger.debug("Revoking %s failed", hint, exc_info=True)
