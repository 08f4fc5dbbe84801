# gst_reporting/api/v1/__init__.py
"""
Versioned API v1, aggregates all sub-routers under ``/api/v1``.

Usage in ``main.py``::

    from gst_reporting.api.v1 import v1_router
    app.include_router(v1_router)
"""

from fastapi import APIRouter

from gst_reporting.api.v1.routes.documents import router as documents_router
from gst_reporting.api.v1.routes.gst_periods import router as gst_periods_router
from gst_reporting.api.v1.routes.gst_tax import router as gst_tax_router
from gst_reporting.api.v1.routes.numbering import router as numbering_router
from gst_reporting.api.v1.routes.reports import router as reports_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(gst_periods_router)
v1_router.include_router(gst_tax_router)
v1_router.include_router(documents_router)
v1_router.include_router(reports_router)
v1_router.include_router(numbering_router)

__all__ = ["v1_router"]
