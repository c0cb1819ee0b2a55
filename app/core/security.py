"""
Access token verification

Tokens are issued by the external identity provider (sign-up, login and
password reset all live there). The API only verifies them and reads the
account id from the ``sub`` claim.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from jose import JWTError, jwt

from config import settings
from app.core.error_handling import UnauthorizedException

CLOCK_SKEW_SECONDS = 60


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode an identity-provider access token

    Expiration and issued-at are checked manually with a 60-second
    tolerance for clock drift between the provider and this server.
    """
    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE,
            options={
                "verify_signature": True,
                "verify_aud": True,
                "verify_exp": False,  # checked below with leeway
                "verify_iat": False,
                "verify_nbf": False,
                "require_exp": False,
                "require_iat": False,
            },
        )

        current_timestamp = int(datetime.now(timezone.utc).timestamp())

        exp = payload.get("exp")
        if exp is not None and current_timestamp > (exp + CLOCK_SKEW_SECONDS):
            raise JWTError("Token has expired")

        iat = payload.get("iat")
        if iat is not None and (iat - CLOCK_SKEW_SECONDS) > current_timestamp:
            raise JWTError("Token issued in the future")

        if not payload.get("sub"):
            raise JWTError("Token has no subject")

        return payload

    except JWTError as e:
        raise UnauthorizedException(
            "Could not validate credentials",
            details={"reason": str(e)},
        )
