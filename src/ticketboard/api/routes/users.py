"""User endpoints."""

from fastapi import APIRouter, status

from ticketboard.api.dependencies import TicketStoreDep
from ticketboard.api.models import (
    APIResponse,
    UserCreate,
    UserResponse,
    user_to_response,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=APIResponse[list[UserResponse]])
def list_users(store: TicketStoreDep) -> APIResponse[list[UserResponse]]:
    """List all users, ordered by name."""
    users = store.list_users()
    return APIResponse(data=[user_to_response(u) for u in users])


@router.post(
    "",
    response_model=APIResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_user(user: UserCreate, store: TicketStoreDep) -> APIResponse[UserResponse]:
    """Create a new user."""
    created = store.create_user(name=user.name, email=user.email, avatar=user.avatar)
    return APIResponse(data=user_to_response(created))
