from fastapi import FastAPI

from gst_reporting.api.v1 import v1_router
from gst_reporting.config.settings import settings
from gst_reporting.core.errors import register_error_handlers
from gst_reporting.core.logging_config import setup_logging

setup_logging()

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
register_error_handlers(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "environment": settings.ENVIRONMENT}


app.include_router(v1_router)
