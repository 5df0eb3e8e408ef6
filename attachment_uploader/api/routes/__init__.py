"""API route registration."""

from fastapi import APIRouter

from attachment_uploader.api.routes import auth, health, uploads

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(uploads.router, prefix="/uploads", tags=["uploads"])
