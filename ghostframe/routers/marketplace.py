from typing import Optional

from fastapi import APIRouter, HTTPException, Request
import structlog

from ghostframe.middleware.rate_limit import ai_generation_limit
from ghostframe.modules.base import ExecutionContext
from ghostframe.modules.registry import registry
from ghostframe.schemas import ModuleExecuteRequest
from ghostframe.services.cache import TTL_MEDIUM, cache, module_key, module_list_key
from ghostframe.services.monitoring import AI_GENERATION_REQUESTS

logger = structlog.get_logger()

router = APIRouter(prefix="/api/marketplace", tags=["marketplace"])


@router.get("/modules")
def list_modules(query: Optional[str] = None):
    key = module_list_key(query)
    modules = cache.get(key)
    if modules is None:
        modules = registry.search(query)
        cache.set(key, modules, expire=TTL_MEDIUM)
    return {"success": True, "data": modules, "message": f"Found {len(modules)} modules"}


@router.get("/featured")
def featured_modules():
    return {"success": True, "data": [m for m in registry.catalog() if m["featured"]]}


@router.get("/modules/{module_id}")
def get_module(module_id: str):
    entry = cache.get(module_key(module_id))
    if entry is None:
        entry = next((m for m in registry.catalog() if m["id"] == module_id), None)
        if entry is None:
            raise HTTPException(status_code=404, detail="Module not found")
        cache.set(module_key(module_id), entry, expire=TTL_MEDIUM)
    return {"success": True, "data": entry}


@router.post("/modules/{module_id}/execute")
@ai_generation_limit()
def execute_module(request: Request, module_id: str, body: ModuleExecuteRequest):
    module = registry.get(module_id)
    if module is None:
        raise HTTPException(status_code=404, detail="Module not found")

    result = module.execute(ExecutionContext(module_id=module_id, input=body.input, options=body.options))
    AI_GENERATION_REQUESTS.labels(type=module_id, status="success" if result.success else "error").inc()
    logger.info("module_executed", module=module_id, success=result.success,
                execution_time_ms=result.metadata.get("execution_time_ms"))
    return result.to_dict()
