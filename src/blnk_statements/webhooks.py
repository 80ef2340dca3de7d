"""Verification of signed Blnk webhooks.

Blnk signs `"{timestamp}.{raw_body}"` with HMAC-SHA256 and sends the hex
digest in `X-Blnk-Signature`, the timestamp in `X-Blnk-Timestamp`. The digest
must be computed over the exact bytes received, before any JSON parsing.
"""

import hashlib
import hmac
import json
from dataclasses import dataclass
from typing import Any

import structlog

from blnk_statements.config import get_settings

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "x-blnk-signature"
TIMESTAMP_HEADER = "x-blnk-timestamp"


class WebhookVerificationError(Exception):
    """A webhook could not be authenticated."""

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class WebhookEvent:
    name: str
    payload: Any


def compute_signature(secret: str, timestamp: str, raw_body: bytes | str) -> str:
    body = raw_body.decode("utf-8") if isinstance(raw_body, bytes) else raw_body
    message = f"{timestamp}.{body}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(secret: str, timestamp: str, raw_body: bytes | str, signature: str) -> bool:
    """Constant-time check of `signature` against the expected digest."""
    expected = compute_signature(secret, timestamp, raw_body)
    if len(signature) != len(expected):
        return False
    return hmac.compare_digest(signature.encode(), expected.encode())


def parse_event(raw_body: bytes | str) -> WebhookEvent:
    """Decode the event name; non-JSON bodies are kept as raw text."""
    body = raw_body.decode("utf-8") if isinstance(raw_body, bytes) else raw_body
    try:
        payload = json.loads(body)
    except ValueError:
        return WebhookEvent(name="unknown", payload=body)

    name = "unknown"
    if isinstance(payload, dict) and isinstance(payload.get("event"), str):
        name = payload["event"]
    return WebhookEvent(name=name, payload=payload)


def verify_and_parse(
    headers: dict[str, str],
    raw_body: bytes | str,
    secret: str | None = None,
) -> WebhookEvent:
    """Authenticate a webhook request and return its event.

    Raises:
        WebhookVerificationError: Missing headers (400) or bad signature (401).
    """
    if secret is None:
        configured = get_settings().blnk_webhook_secret
        if configured is None:
            raise WebhookVerificationError("BLNK_WEBHOOK_SECRET is not configured", 500)
        secret = configured.get_secret_value()

    normalized = {key.lower(): value for key, value in headers.items()}
    signature = normalized.get(SIGNATURE_HEADER)
    timestamp = normalized.get(TIMESTAMP_HEADER)
    if not signature or not timestamp:
        raise WebhookVerificationError(
            f"Missing required headers: {SIGNATURE_HEADER}, {TIMESTAMP_HEADER}", 400
        )

    if not verify_signature(secret, timestamp, raw_body, signature):
        logger.warning("webhook_signature_invalid", timestamp=timestamp)
        raise WebhookVerificationError("Invalid signature")

    event = parse_event(raw_body)
    logger.info("webhook_verified", event_name=event.name)
    return event
