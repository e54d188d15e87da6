"""
Central API Router
Combines all API endpoints into a single router for main.py
"""
from fastapi import APIRouter
from api import logs
from api.endpoints import system, dls_endpoints

# Create the main API router
api_router = APIRouter()

api_router.include_router(system.router, prefix="/api", tags=["system"])
api_router.include_router(logs.router, prefix="/api")
api_router.include_router(dls_endpoints.router, prefix="/api/dls", tags=["dls"])
