"""Trust-on-connect verification of realtime connection credentials."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from jose import JWTError

from heychat.core.security import decode_access_token
from heychat.core.settings import settings

from .errors import AuthenticationError, InvalidCredentialError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated principal attached to a connection for its lifetime."""

    user_id: str
    is_admin: bool = False


class IdentityVerifier:
    """Validate a bearer token once, when the connection opens."""

    def __init__(self, admin_user_id: str | None = None) -> None:
        self.admin_user_id = admin_user_id or settings.admin_user_id

    def verify(self, token: str | None) -> Identity:
        """Return the identity carried by ``token``.

        Raises:
            AuthenticationError: If no token was presented.
            InvalidCredentialError: If the token cannot be validated.
        """
        if token is None or not token.strip():
            raise AuthenticationError("Authentication error")
        try:
            payload = decode_access_token(token.strip())
        except JWTError as err:
            logger.debug("Rejected realtime credential: %s", err)
            raise InvalidCredentialError("Invalid token") from err

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidCredentialError("Invalid token")
        return Identity(user_id=subject, is_admin=subject == self.admin_user_id)


def extract_token(query_token: str | None, authorization: str | None) -> str | None:
    """Pick the credential from the query string or an ``Authorization`` header."""
    if query_token:
        return query_token
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:]
    return None
