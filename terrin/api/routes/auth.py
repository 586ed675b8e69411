import uuid

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_current_user, get_db
from terrin.common.permissions import ROLE_PERMISSIONS, normalize_role
from terrin.core.users.service import update_role
from terrin.db.models.user import User

router = APIRouter(prefix="/auth", tags=["Auth"])


# ---------- Schemas ----------


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str | None
    first_name: str | None
    last_name: str | None
    profile_image_url: str | None
    role: str
    permissions: list[str]

    @classmethod
    def from_orm_instance(cls, user: User) -> "UserResponse":
        role = normalize_role(user.role)
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_image_url=user.profile_image_url,
            role=role.value,
            permissions=sorted(p.value for p in ROLE_PERMISSIONS[role]),
        )


class RoleUpdateRequest(BaseModel):
    role: str


class RoleUpdateResponse(BaseModel):
    message: str
    user: UserResponse


# ---------- Endpoints ----------


@router.get("/user", response_model=UserResponse)
async def get_user(current_user: User = Depends(get_current_user)):
    return UserResponse.from_orm_instance(current_user)


@router.post("/update-role", response_model=RoleUpdateResponse)
async def update_user_role(
    body: RoleUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await update_role(current_user, body.role, db)
    return RoleUpdateResponse(
        message="Role updated successfully",
        user=UserResponse.from_orm_instance(user),
    )
