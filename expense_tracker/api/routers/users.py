from uuid import UUID

from fastapi import APIRouter, Depends

from expense_tracker.api.deps import get_components, get_correlation_id, get_current_user
from expense_tracker.api.schemas import ProfileUpdate, public_user
from expense_tracker.models.expense import User
from expense_tracker.orchestrator import AppComponents

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return {"user": public_user(user)}


@router.put("/profile")
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    updated = await components.accounts.update_profile(
        user.id, body.model_dump(exclude_unset=True), correlation_id
    )
    return {"message": "Profile updated successfully", "user": public_user(updated)}
