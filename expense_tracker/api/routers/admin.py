"""
Admin-only routes.

Every route depends on `get_admin_user`, so a signed-in non-admin gets
403 before any handler runs.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from expense_tracker.api.deps import get_admin_user, get_components, get_correlation_id
from expense_tracker.api.schemas import public_user
from expense_tracker.models.expense import User
from expense_tracker.orchestrator import AppComponents

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users")
async def list_users(
    admin: User = Depends(get_admin_user),
    components: AppComponents = Depends(get_components),
):
    users = await components.accounts.list_users()
    return {"users": [public_user(u) for u in users]}


@router.get("/stats")
async def stats(
    admin: User = Depends(get_admin_user),
    components: AppComponents = Depends(get_components),
):
    return {"stats": await components.reports.admin_stats()}


@router.get("/users/{user_id}")
async def user_detail(
    user_id: UUID,
    admin: User = Depends(get_admin_user),
    components: AppComponents = Depends(get_components),
):
    report = await components.reports.user_detail(user_id)
    expenses = await components.expenses.list_expenses(user_id)
    return {"detail": report, "expenses": expenses}


@router.get("/users/{user_id}/expenses")
async def user_expenses(
    user_id: UUID,
    admin: User = Depends(get_admin_user),
    components: AppComponents = Depends(get_components),
):
    await components.accounts.get_user(user_id)
    return {"expenses": await components.expenses.list_expenses(user_id)}


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: UUID,
    admin: User = Depends(get_admin_user),
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    deleted = await components.accounts.delete_user(user_id, admin, correlation_id)
    return {"message": "User deleted successfully", "expenses_deleted": deleted}


@router.delete("/expenses/{expense_id}")
async def delete_expense(
    expense_id: UUID,
    admin: User = Depends(get_admin_user),
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    await components.expenses.admin_delete_expense(expense_id, admin, correlation_id)
    return {"message": "Expense deleted successfully"}
