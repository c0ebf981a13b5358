"""
API Routes
"""
from fastapi import APIRouter

from activity_webhook.api.routes.activities import router as activities_router
from activity_webhook.api.webhooks.strava import router as strava_router

router = APIRouter()

router.include_router(activities_router, prefix="/activities", tags=["Activities"])
router.include_router(strava_router, prefix="/strava", tags=["Webhooks"])
