"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from app.api.routes import trips, members, reservations

api_router = APIRouter()

# Include all route modules
api_router.include_router(trips.router)
api_router.include_router(members.router)
api_router.include_router(reservations.router)
