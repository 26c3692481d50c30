from fastapi import APIRouter

from contracthub.api.analytics import analytics_router
from contracthub.api.company import company_router
from contracthub.api.contracts import contracts_router
from contracthub.api.requests import admin_requests_router, requests_router
from contracthub.api.status import status_router
from contracthub.api.users import auth_router, users_router

api_router = APIRouter()
api_router.include_router(users_router)
api_router.include_router(auth_router)
api_router.include_router(company_router)
# Fixed /contracts/* paths must be registered before /contracts/{contract_id}.
api_router.include_router(status_router)
api_router.include_router(requests_router)
api_router.include_router(contracts_router)
api_router.include_router(admin_requests_router)
api_router.include_router(analytics_router)
