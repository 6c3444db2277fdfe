"""Viewer-session JWT creation and verification.

The host application owns user identities and decides who is the GM; it
mints a token per viewer and the API trusts the ``sub`` and ``role``
claims once the signature checks out.

* Signed with ``TLB_VIEWER_JWT_SECRET``.
* Contains ``token_type="viewer_session"`` so other tokens signed with the
  same secret are rejected.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import jwt as pyjwt

from timeline_builder.core.visibility import Role, ViewerContext

ISSUER = "timeline-builder"
ALGORITHM = "HS256"
TOKEN_TYPE = "viewer_session"  # nosec B105


@dataclass(frozen=True)
class ViewerTokenPayload:
    """Decoded contents of a viewer-session JWT."""

    sub: str  # viewer id
    role: str  # "gm" or "player"
    token_type: str
    iss: str
    exp: int
    iat: int

    def to_context(self) -> ViewerContext:
        return ViewerContext(user_id=self.sub, role=Role(self.role))


def create_viewer_token(
    *,
    user_id: str,
    role: Role | str,
    jwt_secret: str,
    expiry_minutes: int = 60,
) -> str:
    """Mint a viewer-session JWT."""
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "role": Role(role).value,
        "token_type": TOKEN_TYPE,
        "iss": ISSUER,
        "iat": now,
        "exp": now + expiry_minutes * 60,
    }
    return pyjwt.encode(payload, jwt_secret, algorithm=ALGORITHM)


def verify_viewer_token(token: str, *, jwt_secret: str) -> ViewerTokenPayload:
    """Decode and verify a viewer-session JWT.

    Raises ``pyjwt.InvalidTokenError`` (or a subclass) on failure.
    """
    decoded = pyjwt.decode(token, jwt_secret, algorithms=[ALGORITHM], issuer=ISSUER)

    if decoded.get("token_type") != TOKEN_TYPE:
        raise pyjwt.InvalidTokenError("Not a viewer-session token")
    if decoded.get("role") not in {r.value for r in Role}:
        raise pyjwt.InvalidTokenError("Unknown viewer role")

    return ViewerTokenPayload(
        sub=decoded["sub"],
        role=decoded["role"],
        token_type=decoded["token_type"],
        iss=decoded["iss"],
        exp=decoded["exp"],
        iat=decoded["iat"],
    )
