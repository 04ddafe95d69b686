"""FastAPI dependencies that resolve the calling user.

Authentication itself happens upstream; this layer only reads the opaque
bearer credential and user id it forwards.
"""

import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException

from tunetrail.constants import USER_ID_HEADER
from tunetrail.spotify.client import SpotifyClient
from tunetrail.spotify.exceptions import SpotifyAuthError, SpotifyClientError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def parse_bearer(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header, if any."""
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    return token or None


async def get_bearer_token(authorization: Annotated[str | None, Header()] = None) -> str:
    """Require a bearer credential. Raises HTTPException(401) when absent."""
    token = parse_bearer(authorization)
    if token is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return token


async def get_current_user(
    token: Annotated[str, Depends(get_bearer_token)],
    x_user_id: Annotated[str | None, Header(alias=USER_ID_HEADER)] = None,
) -> str:
    """Return the caller's user id.

    Uses the forwarded ``X-User-Id`` header when present, otherwise asks the
    streaming service whose token this is.
    """
    if x_user_id:
        return x_user_id

    try:
        profile = await SpotifyClient(token, max_retries=1).get_current_user()
    except SpotifyAuthError as exc:
        raise HTTPException(status_code=401, detail="Invalid or expired access token") from exc
    except SpotifyClientError as exc:
        logger.warning("Profile lookup failed: %s", exc)
        raise HTTPException(status_code=502, detail="Could not resolve the current user") from exc
    return profile.id


# Type aliases for Annotated dependencies
BearerToken = Annotated[str, Depends(get_bearer_token)]
CurrentUser = Annotated[str, Depends(get_current_user)]
