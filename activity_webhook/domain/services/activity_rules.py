"""
Activity Rules - decide whether an activity should be renamed and hidden.

An activity qualifies when all of the following hold:
1. its type matches the target type (case-insensitive)
2. it started on a weekday (local time)
3. it has a start location
4. the start location is inside the geofence (bounds inclusive)

Rules are checked in that order and the first failing one is reported.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from activity_webhook.core.config import settings
from activity_webhook.domain.services.strava_client import Activity


class SkipReason(str, Enum):
    """Why an activity was left untouched"""
    NOT_TARGET_TYPE = "not_target_type"
    WEEKEND = "weekend"
    NO_LOCATION = "no_location"
    OUTSIDE_GEOFENCE = "outside_geofence"


@dataclass(frozen=True)
class Geofence:
    """Rectangular lat/lng box"""
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


@dataclass(frozen=True)
class RuleDecision:
    """Result of evaluating the rules against one activity"""
    qualifies: bool
    reason: Optional[SkipReason] = None


class ActivityRules:
    """Evaluates an Activity against the configured type and geofence"""

    def __init__(self, target_type: str, geofence: Geofence) -> None:
        self.target_type = target_type.lower()
        self.geofence = geofence

    @classmethod
    def from_settings(cls) -> "ActivityRules":
        return cls(
            target_type=settings.TARGET_ACTIVITY_TYPE,
            geofence=Geofence(
                min_lat=settings.GEOFENCE_MIN_LAT,
                max_lat=settings.GEOFENCE_MAX_LAT,
                min_lng=settings.GEOFENCE_MIN_LNG,
                max_lng=settings.GEOFENCE_MAX_LNG,
            ),
        )

    def evaluate(self, activity: Activity) -> RuleDecision:
        if activity.activity_type.lower() != self.target_type:
            return RuleDecision(False, SkipReason.NOT_TARGET_TYPE)

        # Monday=0 .. Sunday=6
        if activity.start_date_local.weekday() >= 5:
            return RuleDecision(False, SkipReason.WEEKEND)

        coords = activity.start_latlng
        if not coords or len(coords) < 2:
            return RuleDecision(False, SkipReason.NO_LOCATION)

        lat, lng = coords[0], coords[1]
        if not self.geofence.contains(lat, lng):
            return RuleDecision(False, SkipReason.OUTSIDE_GEOFENCE)

        return RuleDecision(True)
