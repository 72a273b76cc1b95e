from uuid import UUID

from fastapi import APIRouter, Depends

from expense_tracker.api.deps import get_components, get_correlation_id, get_current_user
from expense_tracker.api.schemas import BudgetUpdate
from expense_tracker.models.expense import User
from expense_tracker.orchestrator import AppComponents

router = APIRouter(prefix="/budget", tags=["Budget"])


@router.get("")
async def get_budget(
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return {"budget": await components.accounts.get_budget(user.id)}


@router.put("")
async def update_budget(
    body: BudgetUpdate,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    budget = await components.accounts.update_budget(
        user.id, body.model_dump(exclude_unset=True), correlation_id
    )
    return {"message": "Budget updated successfully", "budget": budget}
