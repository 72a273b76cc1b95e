from fastapi import APIRouter, Depends

from expense_tracker.api.deps import get_components
from expense_tracker.orchestrator import AppComponents

router = APIRouter(tags=["Health"])


@router.get("/health")
def health(components: AppComponents = Depends(get_components)):
    return {
        "status": "ok",
        "message": "Server is running",
        "storage_backend": components.app_settings.storage_backend,
    }
