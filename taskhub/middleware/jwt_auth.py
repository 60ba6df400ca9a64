"""
JWT Auth Middleware — parses the bearer token into ``g.actor``.

Every request under /api/v1/ gets ``g.actor``:
  - an ``Actor(user_id, role, organization_id)`` when a valid access
    token is present,
  - ``None`` otherwise (missing, expired or tampered token).

The middleware never rejects a request itself; endpoints that need a
caller answer 401 when ``g.actor`` is None. Services receive the actor as
an explicit argument and never read ``g``.
"""

import logging

import jwt as pyjwt
from flask import g, request

from taskhub.services.jwt_service import decode_access_token
from taskhub.services.permission import ROLE_VIEWER, Actor

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
    "/api/v1/tasks/health",
)


def actor_from_payload(payload: dict) -> Actor:
    """Build an Actor from a verified token payload."""
    organization_id = payload.get("organization_id")
    return Actor(
        user_id=payload.get("sub"),
        role=str(payload.get("role") or ROLE_VIEWER).lower(),
        organization_id=int(organization_id) if organization_id is not None else None,
    )


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.actor = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]
        try:
            g.actor = actor_from_payload(decode_access_token(token))
        except pyjwt.ExpiredSignatureError:
            logger.info("Expired access token on %s", path)
        except (pyjwt.InvalidTokenError, AttributeError, TypeError, ValueError):
            logger.warning("Invalid access token on %s", path)
