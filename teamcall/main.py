import logging

from fastapi import FastAPI

from teamcall.api.v1.router import router as v1_router
from teamcall.core import settings
from teamcall.runtime.hub import init_hub, shutdown_hub

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="teamcall API", version="0.1.0")
app.include_router(v1_router, prefix="/v1")


@app.on_event("startup")
async def startup_event():
    """Create the process-wide signaling hub."""
    init_hub(outbox_max_size=settings.OUTBOX_MAX_SIZE)


@app.on_event("shutdown")
async def shutdown_event():
    """Close every live socket and drop realtime state."""
    await shutdown_hub()
