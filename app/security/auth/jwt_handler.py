"""
HS256 session tokens.

Tokens are compact JWTs signed with ``SECRET_KEY``. The header algorithm must
match the configured one, so ``alg: none`` and algorithm swaps are rejected
before the signature is even looked at.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.core.config import settings


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _b64url_decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _encode_segment(obj: Dict[str, Any]) -> str:
    return _b64url_encode(json.dumps(obj, separators=(",", ":")).encode())


def _decode_segment(segment: str) -> Dict[str, Any]:
    value = json.loads(_b64url_decode(segment))
    if not isinstance(value, dict):
        raise InvalidTokenError("Token segment is not an object")
    return value


class InvalidTokenError(ValueError):
    pass


@dataclass
class JWTConfig:
    algorithm: str = "HS256"
    expires_minutes: int = 60
    issuer: Optional[str] = None
    leeway_seconds: int = 0


class JWTHandler:
    """Signs and verifies session tokens carrying ``sub``, ``email`` and ``role``."""

    def __init__(self, secret: str, config: Optional[JWTConfig] = None) -> None:
        self.secret = secret.encode()
        self.config = config or JWTConfig(
            algorithm=settings.JWT_ALGORITHM,
            expires_minutes=settings.JWT_EXPIRES_MINUTES,
            issuer=settings.JWT_ISSUER,
        )
        if self.config.algorithm != "HS256":
            raise ValueError(f"Unsupported JWT algorithm: {self.config.algorithm}")

    @property
    def max_age_seconds(self) -> int:
        return self.config.expires_minutes * 60

    def _sign(self, header_b64: str, payload_b64: str) -> bytes:
        signing_input = f"{header_b64}.{payload_b64}".encode()
        return hmac.new(self.secret, signing_input, hashlib.sha256).digest()

    def create_token(
        self, subject: str, claims: Optional[Dict[str, Any]] = None
    ) -> str:
        issued_at = int(time.time())
        payload: Dict[str, Any] = dict(claims or {})
        payload.update(
            sub=subject, iat=issued_at, exp=issued_at + self.max_age_seconds
        )
        if self.config.issuer:
            payload["iss"] = self.config.issuer

        header_b64 = _encode_segment({"alg": self.config.algorithm, "typ": "JWT"})
        payload_b64 = _encode_segment(payload)
        signature_b64 = _b64url_encode(self._sign(header_b64, payload_b64))
        return f"{header_b64}.{payload_b64}.{signature_b64}"

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Return the payload of a valid token or raise ``InvalidTokenError``."""
        try:
            header_b64, payload_b64, signature_b64 = token.split(".")
            header = _decode_segment(header_b64)
            if header.get("alg") != self.config.algorithm:
                raise InvalidTokenError("Unexpected token algorithm")
            expected = self._sign(header_b64, payload_b64)
            if not hmac.compare_digest(expected, _b64url_decode(signature_b64)):
                raise InvalidTokenError("Invalid signature")
            payload = _decode_segment(payload_b64)
        except InvalidTokenError:
            raise
        except (ValueError, TypeError, AttributeError) as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        self._check_claims(payload)
        return payload

    def _check_claims(self, payload: Dict[str, Any]) -> None:
        if not payload.get("sub"):
            raise InvalidTokenError("Token has no subject")
        try:
            expires_at = int(payload.get("exp", 0))
        except (TypeError, ValueError) as e:
            raise InvalidTokenError("Invalid expiry claim") from e
        if expires_at and int(time.time()) > expires_at + self.config.leeway_seconds:
            raise InvalidTokenError("Token expired")
        if self.config.issuer and payload.get("iss") != self.config.issuer:
            raise InvalidTokenError("Invalid issuer")


def get_jwt_handler() -> JWTHandler:
    return JWTHandler(settings.SECRET_KEY)
