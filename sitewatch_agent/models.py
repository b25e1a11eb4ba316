from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SiteStatus = Literal["up", "down", "error"]


class WebsiteRecord(BaseModel):
    # The registry sends its full row (created_at etc.); only id/url matter here.
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    url: str = Field(..., min_length=1)

    @field_validator("url")
    @classmethod
    def _absolute_http_url(cls, value: str) -> str:
        parsed = urlparse(value.strip())
        if parsed.scheme not in ("http", "https"):
            raise ValueError("url must use http or https")
        if not parsed.hostname:
            raise ValueError("url must include a hostname")
        return value

    @property
    def is_https(self) -> bool:
        return is_https_url(self.url)


class BatchRequest(BaseModel):
    websites: list[WebsiteRecord] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_ids(self) -> "BatchRequest":
        seen: set[int] = set()
        for site in self.websites:
            if site.id in seen:
                raise ValueError(f"duplicate website id {site.id}")
            seen.add(site.id)
        return self


class CheckResult(BaseModel):
    id: int
    url: str
    status: SiteStatus
    ssl_valid: bool
    ssl_expires: date | None = None
    ssl_issued_date: date | None = None
    ssl_days_remaining: int | None = None
    response_time: int | None = None
    screenshot_path: str | None = None
    error_message: str | None = Field(None, max_length=100)


@dataclass(frozen=True)
class ProbeResult:
    status: SiteStatus
    ssl_valid: bool
    response_time_ms: int | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class CertificateResult:
    ssl_valid: bool
    expires_on: date | None = None
    issued_on: date | None = None
    days_remaining: int | None = None


def is_https_url(url: str) -> bool:
    return urlparse(url.strip()).scheme == "https"
