from uuid import UUID

from fastapi import APIRouter, Depends

from expense_tracker.api.deps import get_components, get_correlation_id, get_current_user
from expense_tracker.api.schemas import SettingsUpdate
from expense_tracker.models.expense import User
from expense_tracker.orchestrator import AppComponents

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("")
async def get_settings(
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return {"settings": await components.accounts.get_settings(user.id)}


@router.put("")
async def update_settings(
    body: SettingsUpdate,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    settings = await components.accounts.update_settings(
        user.id, body.model_dump(exclude_unset=True), correlation_id
    )
    return {"message": "Settings updated successfully", "settings": settings}
