"""Main API router aggregating all routes."""

from fastapi import APIRouter

from folio.api.routes import chat, health

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(chat.router)
