"""Dashboard and reports page data for the signed-in user."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from expense_tracker.api.deps import get_components, get_correlation_id, get_current_user
from expense_tracker.models.expense import User
from expense_tracker.orchestrator import AppComponents

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard")
async def dashboard(
    today: Optional[date] = None,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    report = await components.reports.dashboard(user.id, today=today, correlation_id=correlation_id)
    return {"dashboard": report}


@router.get("/summary")
async def summary(
    months: Optional[int] = Query(default=None, ge=1, le=24),
    top: Optional[int] = Query(default=None, ge=1, le=20),
    today: Optional[date] = None,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    report = await components.reports.summary(
        user.id,
        months_back=months,
        top_n=top,
        today=today,
        correlation_id=correlation_id,
    )
    return {"summary": report}
