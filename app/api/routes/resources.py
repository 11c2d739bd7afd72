"""CRUD routes shared by the REST route groups.

Handlers read the parsed, sanitized and de-duplicated request data from the
pipeline context instead of re-reading the body or query string.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response

from app.api.dependencies import get_request_context, get_services
from app.pipeline.context import RequestContext
from app.services.registry import ServiceRegistry
from app.services.resource_service import ResourceService

Context = Annotated[RequestContext, Depends(get_request_context)]
Services = Annotated[ServiceRegistry, Depends(get_services)]


def list_response(
    service: ResourceService, context: RequestContext, documents: list[dict[str, Any]]
) -> dict[str, Any]:
    return {
        "status": "success",
        "requestedAt": context.request_time,
        "results": len(documents),
        "data": {service.resource: documents},
    }


def document_response(service: ResourceService, document: dict[str, Any]) -> dict[str, Any]:
    return {"status": "success", "data": {service.singular: document}}


def add_crud_routes(router: APIRouter, resource: str) -> APIRouter:
    """Register list/create/get/update/delete handlers for ``resource``.

    Args:
        router: Router mounted under the resource prefix.
        resource: Attribute name on ``ServiceRegistry``.

    Returns:
        The same router, for chaining.
    """

    @router.get("", summary=f"List {resource}")
    @router.get("/", include_in_schema=False)
    async def list_documents(context: Context, services: Services) -> dict[str, Any]:
        service = services.resource(resource)
        return list_response(service, context, service.list_documents(context.query))

    @router.post("", status_code=201, summary=f"Create a {resource.rstrip('s')}")
    @router.post("/", status_code=201, include_in_schema=False)
    async def create_document(context: Context, services: Services) -> dict[str, Any]:
        service = services.resource(resource)
        return document_response(service, service.create(context.body))

    @router.get("/{doc_id}", summary=f"Get one {resource.rstrip('s')}")
    async def get_document(doc_id: str, services: Services) -> dict[str, Any]:
        service = services.resource(resource)
        return document_response(service, service.get(doc_id))

    @router.patch("/{doc_id}", summary=f"Update a {resource.rstrip('s')}")
    async def update_document(
        doc_id: str, context: Context, services: Services
    ) -> dict[str, Any]:
        service = services.resource(resource)
        return document_response(service, service.update(doc_id, context.body))

    @router.delete("/{doc_id}", status_code=204, summary=f"Delete a {resource.rstrip('s')}")
    async def delete_document(doc_id: str, services: Services) -> Response:
        services.resource(resource).delete(doc_id)
        return Response(status_code=204)

    return router
