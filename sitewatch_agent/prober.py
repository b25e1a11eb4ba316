from __future__ import annotations

import asyncio
import logging
import time

import httpx

from .models import ProbeResult, is_https_url
from .settings import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

MAX_ERROR_MESSAGE_LENGTH = 100


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _describe_failure(exc: Exception) -> str:
    message = str(exc).strip()
    if not message:
        return "Connection failed"
    return message[:MAX_ERROR_MESSAGE_LENGTH]


async def _fetch_status(
    url: str, *, timeout_s: float, user_agent: str, transport: httpx.AsyncBaseTransport | None
) -> int:
    # Status line is enough; the body is never read.
    async with httpx.AsyncClient(timeout=timeout_s, follow_redirects=True, transport=transport) as client:
        async with client.stream(
            "GET",
            url,
            headers={
                "user-agent": user_agent,
                "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            },
        ) as res:
            return res.status_code


async def probe_liveness(
    url: str,
    *,
    timeout_s: float = 30.0,
    user_agent: str = DEFAULT_USER_AGENT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProbeResult:
    """GET ``url`` and classify it as up, down or error.

    ``timeout_s`` bounds the whole request, redirects included. GET rather
    than HEAD: plenty of servers answer HEAD with 405 or nothing.
    """
    start = time.perf_counter()
    try:
        status_code = await asyncio.wait_for(
            _fetch_status(url, timeout_s=timeout_s, user_agent=user_agent, transport=transport),
            timeout=timeout_s,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.debug("Liveness probe of %s timed out after %ss", url, timeout_s)
        return ProbeResult(
            status="error",
            ssl_valid=False,
            response_time_ms=_elapsed_ms(start),
            error_message="Request timeout",
        )
    except Exception as e:
        logger.debug("Liveness probe of %s failed: %r", url, e)
        return ProbeResult(
            status="error",
            ssl_valid=False,
            response_time_ms=_elapsed_ms(start),
            error_message=_describe_failure(e),
        )

    ok = 200 <= status_code < 300
    return ProbeResult(
        status="up" if ok else "down",
        ssl_valid=is_https_url(url) and ok,
        response_time_ms=_elapsed_ms(start),
    )
