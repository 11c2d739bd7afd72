"""Server-rendered pages.

Pages are small HTML documents built from escaped strings; there is no
template engine behind them.
"""

from __future__ import annotations

from html import escape
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from app.adapters.store.base import FieldFilter
from app.api.dependencies import get_services
from app.core.errors import NotFoundAppError
from app.services.registry import ServiceRegistry

router = APIRouter(tags=["Views"])

Services = Annotated[ServiceRegistry, Depends(get_services)]


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>"
        "<html><head>"
        '<meta charset="utf-8">'
        f"<title>Natours | {escape(title)}</title>"
        '<link rel="stylesheet" href="/static/css/style.css">'
        f"</head><body>{body}</body></html>"
    )


@router.get("/", response_class=HTMLResponse, summary="Tour overview page")
async def overview(services: Services) -> HTMLResponse:
    cards = "".join(
        '<li class="card">'
        f'<a href="/tour/{escape(tour.get("slug", ""))}">{escape(tour["name"])}</a>'
        f' <span class="card__price">${tour["price"]:g}</span>'
        "</li>"
        for tour in services.tours.list_documents({"sort": "name"})
    )
    return HTMLResponse(_page("All Tours", f'<main><ul class="card-container">{cards}</ul></main>'))


@router.get("/tour/{slug}", response_class=HTMLResponse, summary="Tour detail page")
async def tour_detail(slug: str, services: Services) -> HTMLResponse:
    tour = services.tours.store.find_one([FieldFilter("slug", "eq", slug)])
    if tour is None:
        raise NotFoundAppError(
            code="tour_not_found",
            message="There is no tour with that name.",
            details={"resource": "tours"},
        )
    body = (
        f"<main><h1>{escape(tour['name'])}</h1>"
        f"<p>{escape(tour.get('summary') or '')}</p>"
        f"<p>{tour['duration']} days, up to {tour['maxGroupSize']} people, "
        f"{escape(tour['difficulty'])}</p>"
        f"<p>${tour['price']:g}</p></main>"
    )
    return HTMLResponse(_page(tour["name"], body))
