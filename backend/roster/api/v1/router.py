from fastapi import APIRouter, Depends

from roster.api.v1.endpoints import employees, health
from roster.core.rate_limit import enforce_rate_limit

api_router = APIRouter(prefix="/api/v1", dependencies=[Depends(enforce_rate_limit)])
api_router.include_router(health.router)
api_router.include_router(employees.router)
