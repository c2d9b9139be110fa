from fastapi import APIRouter

from ghostframe.services.llm import get_router

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.get("/providers")
def list_providers():
    llm = get_router()
    providers = llm.available_providers()
    return {
        "success": True,
        "data": {
            "providers": providers,
            "default": llm.default_provider,
            "available": bool(providers),
        },
    }
