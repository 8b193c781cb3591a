"""API v1 router aggregation."""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, passwords, two_factor

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(passwords.router, prefix="/auth", tags=["passwords"])
api_router.include_router(two_factor.router, prefix="/auth/2fa", tags=["two-factor"])
