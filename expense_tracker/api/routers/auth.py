"""Email/password signup and login, and token checks."""

from uuid import UUID

from fastapi import APIRouter, Depends

from expense_tracker.api.deps import get_components, get_correlation_id, get_current_user
from expense_tracker.api.schemas import LoginIn, SignupIn, public_user
from expense_tracker.models.expense import User
from expense_tracker.orchestrator import AppComponents

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", status_code=201)
async def signup(
    body: SignupIn,
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    user, token = await components.accounts.register(
        body.name, body.email, body.password, correlation_id
    )
    return {
        "message": "Account created successfully",
        "token": token,
        "user": public_user(user),
    }


@router.post("/login")
async def login(
    body: LoginIn,
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    user, token = await components.accounts.login(body.email, body.password, correlation_id)
    return {
        "message": "Login successful",
        "token": token,
        "user": public_user(user),
    }


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return {"user": public_user(user)}


@router.get("/verify")
async def verify(user: User = Depends(get_current_user)):
    return {"valid": True, "user": public_user(user)}
