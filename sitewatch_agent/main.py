from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from dotenv import load_dotenv

from .checker import run_batch
from .models import BatchRequest, CheckResult
from .screenshot import ensure_screenshot_dir
from .settings import Settings


# Load environment variables from a .env at the repo root, if present.
_HERE = Path(__file__).resolve()
load_dotenv(_HERE.parents[1] / ".env", override=False)

settings = Settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    ensure_screenshot_dir(settings)
    yield


app = FastAPI(title="SiteWatch Agent", version="0.1.0", lifespan=_lifespan)

_batch_semaphore = asyncio.Semaphore(settings.batch_concurrency)


@asynccontextmanager
async def _browser_slot():
    try:
        await asyncio.wait_for(_batch_semaphore.acquire(), timeout=settings.batch_acquire_timeout_s)
    except asyncio.TimeoutError:
        raise HTTPException(
            status_code=503,
            detail="Agent busy (another check run is in progress). Please retry.",
            headers={"Retry-After": "5"},
        )
    try:
        yield
    finally:
        _batch_semaphore.release()


app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Stored captures are served back to the dashboard under the same prefix
# the check results point at.
app.mount(
    settings.screenshot_url_prefix,
    StaticFiles(directory=settings.screenshot_dir, check_dir=False),
    name="screenshots",
)


@app.exception_handler(RequestValidationError)
async def _invalid_batch_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "No websites provided", "detail": jsonable_encoder(exc.errors())},
    )


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.post("/screenshot", response_model=list[CheckResult], response_model_exclude_none=True)
async def screenshot_endpoint(req: BatchRequest):
    async with _browser_slot():
        try:
            return await run_batch(req.websites, settings=settings)
        except Exception:
            logger.exception("Check run failed for %d website(s)", len(req.websites))
            return JSONResponse(status_code=500, content={"error": "Internal server error"})
