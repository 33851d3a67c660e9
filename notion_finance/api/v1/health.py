"""Service health and cache maintenance endpoints"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from notion_finance.api.dependencies import get_finance_service
from notion_finance.services.finance import FinanceService

router = APIRouter(prefix="/health")


@router.get("/services")
async def services_health(service: FinanceService = Depends(get_finance_service)):
    """Record-store health; 503 when unhealthy"""
    report = await service.health_check()
    report["metrics"] = service.get_service_metrics()
    status_code = 503 if report["status"] == "unhealthy" else 200
    return JSONResponse(status_code=status_code, content=report)


@router.post("/cache/clear")
async def clear_cache(service: FinanceService = Depends(get_finance_service)):
    service.clear_caches()
    return {"cleared": True}
