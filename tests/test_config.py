"""
Tests for Settings validation
"""
import warnings

import pytest
from pydantic import ValidationError

from activity_webhook.core.config import Settings, normalize_database_url

# Keeps the token warnings out of tests that are not about them
_TOKENS = {"STRAVA_ACCESS_TOKEN": "tok", "STRAVA_VERIFY_TOKEN": "verify"}


class TestDatabaseUrl:

    @pytest.mark.unit
    def test_sync_sqlite_url_is_converted(self):
        assert normalize_database_url("sqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"

    @pytest.mark.unit
    def test_async_url_untouched(self):
        assert normalize_database_url("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"

    @pytest.mark.unit
    def test_settings_apply_conversion(self):
        s = Settings(DATABASE_URL="sqlite:///./ledger.db", **_TOKENS)
        assert s.DATABASE_URL == "sqlite+aiosqlite:///./ledger.db"


class TestStravaSettings:

    @pytest.mark.unit
    def test_trailing_slash_stripped(self):
        s = Settings(STRAVA_API_BASE_URL="https://www.strava.com/api/v3/", **_TOKENS)
        assert s.STRAVA_API_BASE_URL == "https://www.strava.com/api/v3"

    @pytest.mark.unit
    def test_max_retries_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(STRAVA_MAX_RETRIES=0, **_TOKENS)

    @pytest.mark.unit
    def test_transient_status_codes(self):
        s = Settings(STRAVA_TRANSIENT_STATUS_CODES="429, 503,", **_TOKENS)
        assert s.transient_status_codes == {429, 503}

    @pytest.mark.unit
    def test_missing_tokens_warn(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            Settings(STRAVA_ACCESS_TOKEN="", STRAVA_VERIFY_TOKEN="")

        messages = [str(w.message) for w in caught]
        assert any("STRAVA_ACCESS_TOKEN" in m for m in messages)
        assert any("STRAVA_VERIFY_TOKEN" in m for m in messages)


class TestGeofence:

    @pytest.mark.unit
    def test_defaults(self):
        s = Settings(**_TOKENS)
        assert (s.GEOFENCE_MIN_LAT, s.GEOFENCE_MAX_LAT) == (40.0, 41.0)
        assert (s.GEOFENCE_MIN_LNG, s.GEOFENCE_MAX_LNG) == (-74.0, -73.0)
        assert s.TARGET_ACTIVITY_TYPE == "walk"
        assert s.RENAMED_ACTIVITY_NAME == "Rusty"

    @pytest.mark.unit
    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValidationError):
            Settings(GEOFENCE_MIN_LAT=41.0, GEOFENCE_MAX_LAT=40.0, **_TOKENS)
