"""
Remote-put sink: uploads batches to an HTTP put endpoint.

Payload is a gzip-compressed JSON array of
``{"metric", "timestamp", "value", "tags"}`` objects, authenticated with a
bearer token. Large batches are split into chunks of ``batch_size`` points,
one request per chunk.
"""

from __future__ import annotations

import gzip
import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from ..errors import SinkError
from ..points import DataPoint
from ..sanitize import DEFAULT_SANITIZER, Sanitizer

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:4242/api/put"
DEFAULT_BATCH_SIZE = 5000


class PutClient:
    """
    Synchronous HTTP uploader.

    Example:
        client = PutClient("secret", "https://tsdb.internal/api/put", {"env": "prod"})
        client.put(points)
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        global_tags: Mapping[str, str] | None = None,
        sanitizer: Sanitizer = DEFAULT_SANITIZER,
        timeout: float = 10.0,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Bearer token for the endpoint
            api_url: Full URL of the put endpoint
            global_tags: Tags added to every point (point tags win)
            sanitizer: Name/tag sanitizer
            timeout: Per-request timeout in seconds
            batch_size: Maximum points per request
        """
        self.api_key = api_key
        self.api_url = api_url
        self.global_tags = dict(global_tags or {})
        self.sanitizer = sanitizer
        self.timeout = timeout
        self.batch_size = max(1, batch_size)

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Content-Encoding": "gzip",
        }

    def encode(self, data_points: Sequence[DataPoint]) -> bytes:
        """Serialize and gzip one request body."""
        payload: list[dict[str, Any]] = []
        for point in data_points:
            try:
                payload.append(point.to_json(self.global_tags, self.sanitizer))
            except Exception:
                logger.warning("Cannot serialize data point %r", point, exc_info=True)
        return gzip.compress(json.dumps(payload, separators=(",", ":")).encode("utf-8"))

    def put(self, data_points: Sequence[DataPoint]) -> None:
        """
        Upload a batch.

        Raises:
            SinkError: On connection failure or an HTTP status >= 400
        """
        if not data_points:
            return
        with httpx.Client(timeout=self.timeout) as client:
            for start in range(0, len(data_points), self.batch_size):
                chunk = data_points[start : start + self.batch_size]
                self._post(client, chunk)

    def _post(self, client: httpx.Client, chunk: Sequence[DataPoint]) -> None:
        try:
            resp = client.post(self.api_url, content=self.encode(chunk), headers=self.headers())
        except httpx.HTTPError as e:
            raise SinkError(f"Put to {self.api_url} failed: {e}") from e
        if resp.status_code >= 400:
            raise SinkError(
                f"Put to {self.api_url} rejected with {resp.status_code}: {resp.text[:500]}",
                status_code=resp.status_code,
            )
        logger.debug("Put %d points to %s (%d)", len(chunk), self.api_url, resp.status_code)

    def close(self) -> None:
        pass
