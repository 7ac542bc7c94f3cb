import logging
from typing import Optional

from fastapi import Depends, Header

from app.core.errors import AuthError, ForbiddenError
from app.core.security import Claims, decode_claims

logger = logging.getLogger(__name__)


def get_claims(authorization: Optional[str] = Header(None)) -> Claims:
    # Check token
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("Missing or invalid Authorization header")

    token = authorization[len("Bearer "):]
    try:
        return decode_claims(token)
    except AuthError:
        logger.warning("Rejected bearer token")
        raise


def require_role(*allowed_roles: str):
    """Dépendance: claims du token si le rôle est autorisé, sinon 403"""

    def dependency(claims: Claims = Depends(get_claims)) -> Claims:
        if claims.role not in allowed_roles:
            raise ForbiddenError(f"Forbidden: requires role {' or '.join(allowed_roles)}")
        return claims

    return dependency


require_admin = require_role("admin")
require_member = require_role("user")
require_any = require_role("admin", "user")
