from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from app.api.routes.resources import Context, Services, add_crud_routes, list_response

router = APIRouter(tags=["Tours"])


@router.get("/top-5-cheap", summary="Five best rated, cheapest tours")
async def top_five_cheap(context: Context, services: Services) -> dict[str, Any]:
    """Alias for ``?limit=5&sort=-ratingsAverage,price``.

    Explicit query parameters still win over the alias defaults.
    """
    query = {
        "limit": "5",
        "sort": "-ratingsAverage,price",
        "fields": "name,price,ratingsAverage,summary,difficulty",
        **context.query,
    }
    return list_response(services.tours, context, services.tours.list_documents(query))


add_crud_routes(router, "tours")
