"""Expense CRUD for the signed-in user."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from expense_tracker.api.deps import get_components, get_correlation_id, get_current_user
from expense_tracker.api.schemas import ExpenseIn
from expense_tracker.models.expense import User
from expense_tracker.orchestrator import AppComponents

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.get("")
async def list_expenses(
    category: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    expenses = await components.expenses.list_expenses(user.id, category, start, end)
    return {"expenses": expenses}


@router.get("/category/{category}")
async def list_by_category(
    category: str,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    expenses = await components.expenses.list_expenses(user.id, category=category)
    return {"expenses": expenses}


@router.get("/date-range/{start}/{end}")
async def list_by_date_range(
    start: date,
    end: date,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    expenses = await components.expenses.list_expenses(user.id, start=start, end=end)
    return {"expenses": expenses}


@router.get("/{expense_id}")
async def get_expense(
    expense_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return {"expense": await components.expenses.get_expense(user.id, expense_id)}


@router.post("", status_code=201)
async def create_expense(
    body: ExpenseIn,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    expense, warnings = await components.expenses.create_expense(
        user.id, body.model_dump(), correlation_id
    )
    return {
        "message": "Expense added successfully",
        "expense": expense,
        "warnings": warnings,
    }


@router.put("/{expense_id}")
async def update_expense(
    expense_id: UUID,
    body: ExpenseIn,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    # Only the fields the client sent are updated
    expense, warnings = await components.expenses.update_expense(
        user.id, expense_id, body.model_dump(exclude_unset=True), correlation_id
    )
    return {
        "message": "Expense updated successfully",
        "expense": expense,
        "warnings": warnings,
    }


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    await components.expenses.delete_expense(user.id, expense_id, correlation_id)
    return {"message": "Expense deleted successfully"}
