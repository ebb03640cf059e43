from fastapi import APIRouter
from app.api.v1 import admin
from app.api.v1.maps_router import router as maps_router

api_router = APIRouter()

api_router.include_router(maps_router)
api_router.include_router(admin.router)
