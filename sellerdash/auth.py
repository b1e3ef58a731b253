import time
from functools import wraps
from typing import Callable, Dict, Any, Optional

import jwt
from flask import request, abort, g, Flask, has_app_context
from pydantic import BaseModel, Field, field_validator, ValidationError

from .config import Settings, get_settings

PUBLIC_PREFIXES = ("/assets", "/_dash-component-suites")


class JWTClaims(BaseModel):
    """Pydantic model for normalized JWT claims used by the app."""

    sub: str
    name: Optional[str] = None
    role: str = Field(default="Seller")
    store_id: Optional[str] = None
    exp: int

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        role = (v or "Seller") if isinstance(v, str) else "Seller"
        role_map = {
            "Admin": "Admin",
            "Administrator": "Admin",
            "Operator": "Admin",
            "Seller": "Seller",
            "Merchant": "Seller",
            "Viewer": "Seller",
        }
        return role_map.get(role, "Seller")


class AuthService:
    """JWT auth service: request guard, claims access and role checks."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def _decode_jwt(self, token: str) -> dict:
        """Decode and validate a JWT (HS256 by default)."""
        options = {"require": ["exp"], "verify_exp": True}
        kwargs: Dict[str, Any] = {"algorithms": ["HS256"]}
        if self.settings.jwt_issuer:
            kwargs["issuer"] = self.settings.jwt_issuer
        if self.settings.jwt_audience:
            kwargs["audience"] = self.settings.jwt_audience
        return jwt.decode(token, self.settings.jwt_secret, options=options, **kwargs)

    def default_claims(self) -> dict:
        # Local dev runs as an admin so the regenerate actions are usable.
        model = JWTClaims(
            sub="devuser@example.com",
            name="Dev User",
            role="Admin",
            store_id=None,
            exp=int(time.time()) + 3600,
        )
        return model.model_dump()

    def current_claims(self) -> dict:
        """Access JWT claims for this request (fallback to defaults in dev)."""
        if not has_app_context():
            return self.default_claims()
        return getattr(g, "claims", self.default_claims())

    def require_role(self, role: str) -> Callable:
        """View decorator aborting with 403 unless the caller has `role`."""

        def decorator(fn):
            @wraps(fn)
            def wrapper(*args, **kwargs):
                if self.current_claims().get("role") != role:
                    abort(403, description=f"{role} role required")
                return fn(*args, **kwargs)

            return wrapper

        return decorator

    def init_app(self, server: Flask) -> None:
        """Register a before_request auth guard on the Flask server."""

        @server.before_request
        def require_auth():
            path = request.path or ""
            if path.startswith(PUBLIC_PREFIXES) or path == "/health":
                return None

            if self.settings.disable_auth:
                g.claims = self.default_claims()
                return None

            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")

            token = auth.split(" ", 1)[1].strip()
            try:
                decoded = self._decode_jwt(token)
                claims = JWTClaims.model_validate(decoded).model_dump()
            except (jwt.PyJWTError, ValidationError) as e:
                abort(401, description=f"Invalid token: {e}")

            g.claims = claims
            return None


# Module-level singleton and functions used by the composition root and views
_auth_service = AuthService()


def current_claims():
    return _auth_service.current_claims()


def require_role(role: str) -> Callable:
    return _auth_service.require_role(role)


def init_auth(server: Flask) -> None:
    _auth_service.init_app(server)
