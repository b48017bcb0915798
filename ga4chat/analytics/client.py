"""GA4 Data API client handle.

One ``AnalyticsClient`` per process.  The underlying
``BetaAnalyticsDataClient`` is built lazily on first use from one of two
credential sources, tried in order:

  1. GA_CREDENTIALS_JSON             -- inline service-account JSON
  2. GOOGLE_APPLICATION_CREDENTIALS  -- path to a service-account key file
"""
from __future__ import annotations

import json
import threading
from typing import Any

from google.analytics.data_v1beta import BetaAnalyticsDataClient
from google.analytics.data_v1beta import types as ga4
from google.oauth2 import service_account

from ga4chat.core.config import Settings, get_settings
from ga4chat.core.errors import ConfigError
from ga4chat.core.logging import get_logger

logger = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/analytics.readonly"]


def resolve_credentials(credentials_json: str, credentials_path: str) -> service_account.Credentials:
    """Build service-account credentials; inline JSON wins over a file path."""
    if credentials_json:
        try:
            info = json.loads(credentials_json)
            if not isinstance(info, dict):
                raise ValueError(f"expected a JSON object, got {type(info).__name__}")
            creds = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        except (ValueError, TypeError, AttributeError) as exc:
            logger.error("Failed to parse GA_CREDENTIALS_JSON: %s", exc)
            raise ConfigError("Invalid GA_CREDENTIALS_JSON format") from exc
        logger.info("Using GA credentials from GA_CREDENTIALS_JSON environment variable")
        return creds

    if not credentials_path:
        raise ConfigError(
            "Neither GA_CREDENTIALS_JSON nor GOOGLE_APPLICATION_CREDENTIALS is set"
        )

    try:
        creds = service_account.Credentials.from_service_account_file(credentials_path, scopes=SCOPES)
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot load GA credentials file: {credentials_path}") from exc
    logger.info("Using GA credentials from file: %s", credentials_path)
    return creds


class AnalyticsClient:
    """Property id plus a lazily-built, process-lifetime GA4 API handle."""

    def __init__(
        self,
        property_id: str = "",
        credentials_json: str = "",
        credentials_path: str = "",
        api_client: Any = None,
    ):
        self.property_id = property_id
        self._credentials_json = credentials_json
        self._credentials_path = credentials_path
        self._client = api_client
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> AnalyticsClient:
        settings = settings or get_settings()
        return cls(
            property_id=settings.ga4_property_id,
            credentials_json=settings.ga_credentials_json,
            credentials_path=settings.google_application_credentials,
        )

    def _api(self) -> Any:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    creds = resolve_credentials(self._credentials_json, self._credentials_path)
                    self._client = BetaAnalyticsDataClient(credentials=creds)
        return self._client

    def run_report(self, request: ga4.RunReportRequest) -> ga4.RunReportResponse:
        return self._api().run_report(request=request)
