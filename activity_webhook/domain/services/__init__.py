"""
Domain Services
"""
from activity_webhook.domain.services.activity_processor import (
    ActivityProcessor,
    ProcessingOutcome,
    ProcessingResult,
    process_activity_in_background,
)
from activity_webhook.domain.services.activity_rules import ActivityRules, Geofence, SkipReason
from activity_webhook.domain.services.ledger_service import LedgerService
from activity_webhook.domain.services.strava_client import Activity, StravaClient, get_strava_client

__all__ = [
    "ActivityProcessor",
    "ProcessingOutcome",
    "ProcessingResult",
    "process_activity_in_background",
    "ActivityRules",
    "Geofence",
    "SkipReason",
    "LedgerService",
    "Activity",
    "StravaClient",
    "get_strava_client",
]
