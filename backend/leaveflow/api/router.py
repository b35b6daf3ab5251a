from fastapi import APIRouter

from leaveflow.api.entitlements import entitlements_router
from leaveflow.api.holidays import holidays_router
from leaveflow.api.leave_types import leave_types_router
from leaveflow.api.policies import router as policies_router
from leaveflow.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(leave_types_router)
api_router.include_router(policies_router)
api_router.include_router(holidays_router)
api_router.include_router(entitlements_router)
api_router.include_router(requests_router)
