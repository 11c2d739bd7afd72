from __future__ import annotations

from fastapi import APIRouter

from app.api.routes.resources import add_crud_routes

router = add_crud_routes(APIRouter(tags=["Bookings"]), "bookings")
