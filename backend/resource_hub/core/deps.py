import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from resource_hub.core.config import settings
from resource_hub.imports.catalog import CatalogRegistry
from resource_hub.imports.importer import BatchImporter, ResourceSink
from resource_hub.imports.session import ImportSession, SessionStore
from resource_hub.services.resource_sink import HttpResourceSink


def get_catalogs(request: Request) -> CatalogRegistry:
    return request.app.state.catalogs


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.import_sessions


def get_resource_sink(request: Request) -> ResourceSink:
    """The external create operation, backed by the shared HTTP client."""
    return HttpResourceSink(
        client=request.app.state.http_client,
        url=settings.RESOURCE_API_URL,
        token=settings.RESOURCE_API_TOKEN,
    )


def get_importer(sink: Annotated[ResourceSink, Depends(get_resource_sink)]) -> BatchImporter:
    return BatchImporter(sink, batch_size=settings.IMPORT_BATCH_SIZE)


def get_import_session(
    session_id: uuid.UUID,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> ImportSession:
    """Resolve the path's session id. Raises 404 if it expired or never existed."""
    session = store.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Import session not found or expired.",
        )
    return session
