from __future__ import annotations

from .models import CertificateResult, CheckResult, ProbeResult, WebsiteRecord


def reconcile(
    website: WebsiteRecord,
    probe: ProbeResult,
    certificate: CertificateResult,
    screenshot_path: str | None,
) -> CheckResult:
    """Merge the three per-site signals into one record.

    A rendered page counts as evidence that the site is reachable, so a
    successful capture lifts ``status`` to "up" and, on https, marks TLS as
    working even when the direct certificate check came back empty.
    Certificate dates only ever come from the inspector. The probe's error is
    reported only when there is no screenshot to show instead.
    """
    captured = screenshot_path is not None

    status = probe.status
    if captured and status != "up":
        status = "up"

    ssl_valid = certificate.ssl_valid or (captured and website.is_https)

    return CheckResult(
        id=website.id,
        url=website.url,
        status=status,
        ssl_valid=ssl_valid,
        ssl_expires=certificate.expires_on,
        ssl_issued_date=certificate.issued_on,
        ssl_days_remaining=certificate.days_remaining,
        response_time=probe.response_time_ms,
        screenshot_path=screenshot_path,
        error_message=None if captured else probe.error_message,
    )
