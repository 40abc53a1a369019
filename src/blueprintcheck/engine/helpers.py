"""
Helper generators.

Each generator produces one placeholder value for a ``${tag}`` expression.
They are pure functions of the injected RandomSource (and, for timestamps,
of the instant passed in); none of them raise for out-of-range input.

The secrets produced here are preview values, and ``generate_jwt`` does not
produce a verifiable signature.
"""

from __future__ import annotations

import base64
import json
import math
import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from blueprintcheck.core.constants import (
    EMAIL_DOMAINS,
    JWT_HEADER,
    JWT_SECRET_LENGTH,
    JWT_SIGNATURE_LENGTH,
    MAX_PORT,
    MIN_PORT,
    PASSWORD_CHARSET,
    PLACEHOLDER_DOMAIN_BYTES,
    PLACEHOLDER_DOMAIN_PREFIX,
    PLACEHOLDER_DOMAIN_SUFFIX,
    USERNAME_ADJECTIVES,
    USERNAME_NOUNS,
    USERNAME_SUFFIX_LIMIT,
)

if TYPE_CHECKING:
    from blueprintcheck.domain.models import DomainSchema
    from blueprintcheck.engine.entropy import RandomSource

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
NOT_A_NUMBER = "NaN"


def generate_domain(rng: RandomSource, schema: DomainSchema | None = None) -> str:
    """Return the schema's domain override, or a random placeholder host."""
    if schema is not None and schema.domain:
        return schema.domain
    token = rng.token_bytes(PLACEHOLDER_DOMAIN_BYTES).hex()
    return f"{PLACEHOLDER_DOMAIN_PREFIX}{token}{PLACEHOLDER_DOMAIN_SUFFIX}"


def generate_base64(rng: RandomSource, length: int = 32) -> str:
    """Base64 encoding of ``length`` random bytes."""
    return base64.b64encode(rng.token_bytes(length)).decode("ascii")


def generate_password(rng: RandomSource, length: int = 16) -> str:
    """Exactly ``length`` characters from the password charset."""
    return "".join(rng.choice(PASSWORD_CHARSET) for _ in range(length))


def generate_hash(rng: RandomSource, length: int = 8) -> str:
    """Hex encoding of ``length`` random bytes."""
    return rng.token_bytes(length).hex()


def generate_uuid(rng: RandomSource) -> str:
    """Version-4 UUID built from the random source."""
    return str(uuid.UUID(bytes=rng.token_bytes(16), version=4))


def generate_random_port(rng: RandomSource) -> str:
    return str(MIN_PORT + rng.randbelow(MAX_PORT - MIN_PORT + 1))


def generate_username(rng: RandomSource) -> str:
    adjective = rng.choice(USERNAME_ADJECTIVES)
    noun = rng.choice(USERNAME_NOUNS)
    number = rng.randbelow(USERNAME_SUFFIX_LIMIT)
    return f"{adjective}{noun}{number}".lower()


def generate_email(rng: RandomSource) -> str:
    username = generate_username(rng)
    domain = rng.choice(EMAIL_DOMAINS)
    return f"{username}@{domain}".lower()


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _compact_json(data: Any) -> bytes:
    return json.dumps(data, separators=(",", ":")).encode("utf-8")


def generate_jwt(
    rng: RandomSource,
    length: int | None = None,
    secret: str | None = None,
    payload: dict[str, Any] | None = None,
) -> str:
    """
    Generate a JWT-shaped token.

    Args:
        rng: Random source.
        length: Legacy ``jwt:<n>`` form; returns ``n`` random bytes as hex.
        secret: Secret used for the signature segment. Random when omitted.
        payload: Token claims. Empty object when omitted.

    Returns:
        ``header.payload.signature`` in base64url, or a hex token for the
        legacy form. The signature is the truncated base64url of the secret,
        not an HMAC.
    """
    if length:
        return rng.token_bytes(length).hex()

    if secret is None:
        secret = generate_password(rng, JWT_SECRET_LENGTH)

    header = _b64url(_compact_json(JWT_HEADER))
    body = _b64url(_compact_json(payload or {}))
    signature = _b64url(secret.encode("utf-8"))[:JWT_SIGNATURE_LENGTH]
    return f"{header}.{body}.{signature}"


def parse_datetime(literal: str) -> datetime | None:
    """
    Parse an ISO-8601 datetime literal.

    Naive values are read as UTC. Returns None when the literal is not a
    datetime.
    """
    text = literal.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def epoch_millis(moment: datetime) -> int:
    return (moment - EPOCH) // timedelta(milliseconds=1)


def epoch_seconds(moment: datetime) -> int:
    """Whole seconds since the epoch, rounded half up."""
    return math.floor(epoch_millis(moment) / 1000 + 0.5)


def timestamp_from_literal(literal: str, unit: str) -> str:
    """
    Convert a datetime literal to epoch milliseconds (``ms``) or seconds (``s``).

    An unparsable literal yields ``"NaN"`` instead of raising.
    """
    moment = parse_datetime(literal)
    if moment is None:
        return NOT_A_NUMBER
    if unit == "s":
        return str(epoch_seconds(moment))
    return str(epoch_millis(moment))
