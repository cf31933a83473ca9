"""
search6.api.auth — Discord login endpoints
============================================

``GET /o`` sends the visitor to Discord; ``GET /oc`` is the OAuth callback,
which forwards to the lookup page pre-filled with the verified account id.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from search6.api.deps import get_auth
from search6.errors import AuthError, InvalidState
from search6.services.auth_exchange import AuthExchange

logger = logging.getLogger(__name__)
router = APIRouter(tags=["auth"])


@router.get("/o")
async def login(auth: AuthExchange = Depends(get_auth)):
    """Redirect to the Discord OAuth2 consent screen."""
    return RedirectResponse(await auth.begin_login())


@router.get("/oc")
async def callback(code: str, state: str, auth: AuthExchange = Depends(get_auth)):
    """Finish the login and show the caller their own card."""
    try:
        user_id = await auth.complete_login(code, state)
    except InvalidState as exc:
        raise HTTPException(400, str(exc))
    except AuthError as exc:
        logger.warning("Discord login failed: %s", exc)
        raise HTTPException(502, str(exc))

    return RedirectResponse(f"/?id={user_id}&userexists=true")
