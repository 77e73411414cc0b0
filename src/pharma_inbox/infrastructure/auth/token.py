from __future__ import annotations

import jwt

from pharma_inbox.application.dto.credentials import Credentials
from pharma_inbox.application.exceptions import ValidationError

_USER_ID_CLAIMS = ("userId", "id", "_id", "sub")


def credentials_from_token(token: str, user_id: str | None = None) -> Credentials:
    """Build Credentials, reading the user id from the token when not given.

    The signature is not checked here; the backend verifies every request.
    """
    if not token:
        raise ValidationError("a bearer token is required")

    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.DecodeError:
        claims = {}

    if user_id is None:
        for claim in _USER_ID_CLAIMS:
            if claims.get(claim) is not None:
                user_id = str(claims[claim])
                break
    role = claims.get("role")
    return Credentials(token=token, user_id=user_id, role=role)
