from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
import structlog

from parkmate.core.config import get_settings

logger = structlog.get_logger("parkmate.services.sms_gateway")

RETRY_JITTER_RATIO = 0.25
RETRYABLE_STATUS_CODES = frozenset({429})


class SmsGatewayError(Exception):
    def __init__(self, message: str, *, attempts: int, status_code: int | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.status_code = status_code


@dataclass(slots=True)
class SmsSendResult:
    attempts: int
    provider_message_id: str | None = None


def retry_backoff_seconds(
    *,
    next_retry_attempt: int,
    backoff_max_seconds: int,
) -> int:
    safe_retry_attempt = max(1, int(next_retry_attempt))
    safe_backoff_max_seconds = max(1, int(backoff_max_seconds))

    base_delay = min(safe_backoff_max_seconds, 2 ** (safe_retry_attempt - 1))
    max_jitter = max(0, int(base_delay * RETRY_JITTER_RATIO))
    jitter = random.randint(0, max_jitter) if max_jitter > 0 else 0
    return min(safe_backoff_max_seconds, base_delay + jitter)


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES or status_code >= 500


def build_sms_client() -> httpx.AsyncClient:
    settings = get_settings()
    headers = {}
    if settings.sms_gateway_token:
        headers["Authorization"] = f"Bearer {settings.sms_gateway_token}"
    return httpx.AsyncClient(
        timeout=settings.sms_gateway_timeout_seconds,
        headers=headers,
    )


async def send_sms(
    *,
    client: httpx.AsyncClient,
    to_number: str,
    message: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> SmsSendResult:
    """Deliver one SMS through the gateway.

    Transport errors, 429 and 5xx are retried with exponential backoff and
    jitter up to SMS_GATEWAY_MAX_ATTEMPTS; any other 4xx fails at once.
    """
    settings = get_settings()
    if not settings.sms_gateway_url:
        raise SmsGatewayError("SMS gateway is not configured", attempts=0)

    max_attempts = max(1, settings.sms_gateway_max_attempts)
    last_error = "unknown"
    last_status: int | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            response = await client.post(
                settings.sms_gateway_url,
                json={"to": to_number, "message": message},
            )
        except httpx.TransportError as exc:
            last_error = type(exc).__name__
            last_status = None
        else:
            if response.status_code < 400:
                provider_message_id = None
                if response.content:
                    try:
                        payload = response.json()
                    except ValueError:
                        payload = None
                    if isinstance(payload, dict) and payload.get("id") is not None:
                        provider_message_id = str(payload["id"])
                return SmsSendResult(attempts=attempt, provider_message_id=provider_message_id)

            last_status = response.status_code
            last_error = f"HTTP {response.status_code}"
            if not is_retryable_status(response.status_code):
                raise SmsGatewayError(last_error, attempts=attempt, status_code=last_status)

        if attempt < max_attempts:
            delay = retry_backoff_seconds(
                next_retry_attempt=attempt,
                backoff_max_seconds=settings.sms_gateway_backoff_max_seconds,
            )
            logger.warning(
                "sms_gateway_retry_scheduled",
                attempt=attempt,
                delay_seconds=delay,
                error=last_error,
            )
            await sleep(delay)

    raise SmsGatewayError(last_error, attempts=max_attempts, status_code=last_status)
