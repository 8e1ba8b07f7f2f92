import logging
from typing import List, Optional

import httpx

from .config import DEFAULT_RELAY_URL, Settings
from .errors import ParseError, UpstreamError
from .parsing import AnalysisRecord, parse_analysis

logger = logging.getLogger(__name__)


class RelayClient:
    """Posts a drawing to the relay endpoint and parses the analysis it returns."""

    def __init__(self, url: str = DEFAULT_RELAY_URL, timeout: Optional[float] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.url = url
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "RelayClient":
        return cls(settings.relay_url, timeout=settings.http_timeout, **kwargs)

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def fetch_analysis(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
        files = {"imageBlob": ("drawing.jpg", image_bytes, mime_type)}
        try:
            response = self._client.post(self.url, files=files)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Relay request failed: {e}") from e
        if response.is_error:
            raise UpstreamError(f"Relay answered {response.status_code}: {response.text[:200]}")
        try:
            return response.json()["analysis"]
        except (ValueError, KeyError, TypeError) as e:
            raise ParseError("Relay response has no analysis field", response.text) from e

    def analyze(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> List[AnalysisRecord]:
        records = parse_analysis(self.fetch_analysis(image_bytes, mime_type))
        logger.info("Relay returned %d record(s)", len(records))
        return records

    __call__ = analyze
