from __future__ import annotations

import asyncio
import logging
import ssl
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

from .models import CertificateResult

logger = logging.getLogger(__name__)

_CERT_TIME_FORMAT = "%b %d %H:%M:%S %Y %Z"
_NOT_APPLICABLE = CertificateResult(ssl_valid=False)


def _tls_host_port(url: str) -> tuple[str, int] | None:
    try:
        parsed = urlparse(url.strip())
        port = parsed.port
    except ValueError:
        return None
    if parsed.scheme != "https" or not parsed.hostname:
        return None
    return parsed.hostname, port or 443


def _parse_cert_time(value: Any) -> datetime | None:
    # ssl.getpeercert() renders times like "Feb  6 12:00:00 2026 GMT"
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        dt = datetime.strptime(value.strip(), _CERT_TIME_FORMAT)
    except ValueError:
        return None
    return dt.replace(tzinfo=timezone.utc)


def certificate_result_from_peercert(cert: dict[str, Any] | None, now: datetime | None = None) -> CertificateResult:
    """Turn the dict returned by ``SSLSocket.getpeercert()`` into a result.

    The certificate is valid when ``now`` lies inside ``[notBefore, notAfter]``.
    ``days_remaining`` is floored and goes negative once the certificate has
    expired. A missing certificate or unparseable dates yield an invalid result
    with no dates at all.
    """
    if not cert:
        return _NOT_APPLICABLE

    valid_from = _parse_cert_time(cert.get("notBefore"))
    valid_to = _parse_cert_time(cert.get("notAfter"))
    if valid_from is None or valid_to is None:
        return _NOT_APPLICABLE

    now = now or datetime.now(timezone.utc)
    days_remaining = int((valid_to - now).total_seconds() // 86400)

    return CertificateResult(
        ssl_valid=valid_from <= now <= valid_to,
        expires_on=valid_to.date(),
        issued_on=valid_from.date(),
        days_remaining=days_remaining,
    )


async def _fetch_peercert(host: str, port: int, timeout_s: float) -> dict[str, Any] | None:
    ctx = ssl.create_default_context()
    writer = None
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host=host, port=port, ssl=ctx, server_hostname=host),
            timeout=timeout_s,
        )
        sslobj = writer.get_extra_info("ssl_object")
        return sslobj.getpeercert() if sslobj else None
    finally:
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except (OSError, ssl.SSLError):
                pass


async def inspect_certificate(url: str, *, timeout_s: float = 5.0) -> CertificateResult:
    """Read the validity window of the server certificate behind ``url``.

    Only https URLs are inspected. Handshake failures (untrusted chain,
    hostname mismatch), socket errors and timeouts all degrade to
    ``ssl_valid=False``; this function does not raise for network problems.
    """
    target = _tls_host_port(url)
    if target is None:
        return _NOT_APPLICABLE

    host, port = target
    try:
        cert = await _fetch_peercert(host, port, timeout_s)
    except asyncio.TimeoutError:
        logger.debug("TLS handshake with %s:%s timed out after %ss", host, port, timeout_s)
        return _NOT_APPLICABLE
    except (OSError, ssl.SSLError, ValueError) as e:
        logger.debug("TLS inspection of %s:%s failed: %s", host, port, e)
        return _NOT_APPLICABLE

    return certificate_result_from_peercert(cert)
