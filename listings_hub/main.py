import logging

from fastapi import FastAPI

from listings_hub.api.v1.router import router as v1_router
from listings_hub.core.config import settings
from listings_hub.core.telemetry import setup_telemetry

logging.basicConfig(level=settings.log_level)

app = FastAPI(title="Listings Hub API", version="0.1.0")

setup_telemetry(app)
app.include_router(v1_router)
