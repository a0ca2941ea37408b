"""Profile API — the caller's own account.

- GET /users/me → profile
- PUT /users/me → rename
- DELETE /users/me → delete the account and everything it owns
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from gameshelf.auth.dependencies import get_current_identity
from gameshelf.auth.identity import Identity
from gameshelf.db.engine import get_db
from gameshelf.schemas.auth import UserRead
from gameshelf.schemas.user import ProfileUpdate
from gameshelf.services.errors import ForbiddenError, NotFoundError
from gameshelf.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: Identity = Depends(get_current_identity),
    svc: UserService = Depends(_svc),
):
    try:
        return await svc.get_profile(identity)
    except NotFoundError:
        # Token outlived the account.
        raise HTTPException(status_code=401, detail="Authentication required")


@router.put("/me", response_model=UserRead)
async def update_me(
    body: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    svc: UserService = Depends(_svc),
):
    try:
        return await svc.update_profile(identity, name=body.name)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.delete("/me", status_code=204)
async def delete_me(
    identity: Identity = Depends(get_current_identity),
    svc: UserService = Depends(_svc),
):
    try:
        await svc.delete_account(identity)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return Response(status_code=204)
