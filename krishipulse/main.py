import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from krishipulse import __version__
from krishipulse.config import settings
from krishipulse.di import get_dispatch_policy, get_pipeline
from krishipulse.http import close_http, init_http
from krishipulse.logs import configure_logging
from krishipulse.schemas import FarmerInput
from krishipulse.services.notifications import DispatchPolicy
from krishipulse.services.pipeline import FarmerPipeline
from krishipulse.utils.cache import close_cache, init_cache

log = logging.getLogger("krishipulse.main")

# Single FastAPI instance
app = FastAPI(title="KrishiPulse", version=__version__)

@app.on_event("startup")
async def startup_event():
    """Initialize logging, cache and HTTP client on startup."""
    configure_logging()
    await init_cache()
    await init_http()

@app.on_event("shutdown")
async def shutdown_event():
    await close_http()
    await close_cache()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
async def health(policy: DispatchPolicy = Depends(get_dispatch_policy)):
    return {
        "ok": True,
        "service": "KrishiPulse",
        "version": app.version,
        "env": settings.APP_ENV,
        "wx_days": settings.WX_FORECAST_DAYS,
        "notifications": {
            "skipped": policy.skip_notifications,
            "sms_limit_exceeded": policy.sms_limit_exceeded,
        },
    }

@app.post("/pipeline")
async def run_pipeline(req: FarmerInput, pipeline: FarmerPipeline = Depends(get_pipeline)):
    """
    Full farmer analysis: location, environmental + weather + image collection,
    insights, recommendations and one SMS/voice alert.
    Always 200; `success: false` carries fallback data.
    """
    result = await pipeline.execute_farmer_pipeline(req)
    return result.to_wire()

@app.post("/notifications/reset")
async def reset_notifications(policy: DispatchPolicy = Depends(get_dispatch_policy)):
    policy.reset()
    return {"ok": True}
