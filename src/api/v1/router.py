from fastapi import APIRouter
from src.api.v1.endpoints import otp, access


api_router = APIRouter()

api_router.include_router(otp.router, prefix="/otp", tags=["otp"])
api_router.include_router(access.router, prefix="/access", tags=["access"])
