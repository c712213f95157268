"""HTTP client for the resource store's batch create endpoint."""
import logging
from typing import Any

import httpx

from resource_hub.imports.errors import ImportTransportError

logger = logging.getLogger(__name__)


class HttpResourceSink:
    """POSTs one batch (a JSON list of records) per call.

    Any transport error or non-2xx response is raised as ImportTransportError
    so the importer halts. The whole call is treated as one unit even though
    the store is not required to be transactional.
    """

    def __init__(self, client: httpx.AsyncClient, url: str, token: str = ""):
        self.client = client
        self.url = url
        self.token = token

    async def create_batch(self, records: list[dict[str, Any]]) -> None:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            response = await self.client.post(self.url, json=records, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ImportTransportError(
                f"Resource store returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ImportTransportError(f"Resource store unreachable: {exc}") from exc
        logger.debug("Resource store accepted %d records", len(records))
