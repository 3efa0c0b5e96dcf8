from fastapi import APIRouter

from georoute.api.v1.endpoints import locations, routes, settings

api_router = APIRouter()

api_router.include_router(locations.router, prefix="/locations", tags=["locations"])
api_router.include_router(routes.router, prefix="/routes", tags=["routes"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
