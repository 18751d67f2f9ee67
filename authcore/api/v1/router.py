"""API v1 router aggregation."""

from fastapi import APIRouter

from authcore.api.v1 import auth, oauth, users

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(oauth.router, prefix="/auth", tags=["OAuth"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
