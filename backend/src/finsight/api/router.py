"""Main API router aggregating all v1 routes."""

from fastapi import APIRouter

from finsight.api.routes import chat, health, models

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(models.router)
api_router.include_router(chat.router)
