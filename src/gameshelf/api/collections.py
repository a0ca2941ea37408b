"""Collection API — the caller's board games, notes, and labels.

Learn: Routes for the collection:
- GET /collections → every game, with labels and the caller's rating
- GET /collections/labels → the caller's labels, by name
- POST /collections/games → add a game (label names get reconciled)
- PUT /collections/games/:game_id → change notes and/or labels
- DELETE /collections/games/:game_id → remove a game (labels stay)
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from gameshelf.auth.dependencies import get_current_identity
from gameshelf.auth.identity import Identity
from gameshelf.db.engine import get_db
from gameshelf.schemas.collection import (
    CollectionGameCreate,
    CollectionGameUpdate,
    CollectionItemRead,
    CollectionRead,
    LabelRead,
)
from gameshelf.services.collection_service import CollectionItem, CollectionService
from gameshelf.services.errors import ConflictError, ForbiddenError, NotFoundError

router = APIRouter(prefix="/collections")


def _svc(db: AsyncSession = Depends(get_db)) -> CollectionService:
    return CollectionService(db)


def _to_read(item: CollectionItem) -> CollectionItemRead:
    return CollectionItemRead(
        game_id=item.entry.game_id,
        notes=item.entry.notes,
        user_rating=item.user_rating,
        modified_at=item.entry.modified_at,
        labels=[
            LabelRead.model_validate(label)
            for label in sorted(item.entry.labels, key=lambda label: label.name)
        ],
    )


@router.get("", response_model=CollectionRead)
async def get_collection(
    identity: Identity = Depends(get_current_identity),
    svc: CollectionService = Depends(_svc),
):
    try:
        items = await svc.get_collection(identity)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return CollectionRead(games=[_to_read(i) for i in items], total_count=len(items))


@router.get("/labels", response_model=list[LabelRead])
async def list_labels(
    identity: Identity = Depends(get_current_identity),
    svc: CollectionService = Depends(_svc),
):
    try:
        labels = await svc.list_labels(identity)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return [LabelRead.model_validate(label) for label in labels]


@router.post("/games", response_model=CollectionItemRead, status_code=201)
async def add_game(
    body: CollectionGameCreate,
    identity: Identity = Depends(get_current_identity),
    svc: CollectionService = Depends(_svc),
):
    try:
        item = await svc.add_game(
            identity,
            game_id=body.game_id,
            notes=body.notes,
            label_names=body.label_names,
        )
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return _to_read(item)


@router.put("/games/{game_id}", response_model=CollectionItemRead)
async def update_game(
    game_id: int,
    body: CollectionGameUpdate,
    identity: Identity = Depends(get_current_identity),
    svc: CollectionService = Depends(_svc),
):
    try:
        item = await svc.update_game(
            identity,
            game_id,
            notes=body.notes,
            label_names=body.label_names,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return _to_read(item)


@router.delete("/games/{game_id}", status_code=204)
async def remove_game(
    game_id: int,
    identity: Identity = Depends(get_current_identity),
    svc: CollectionService = Depends(_svc),
):
    try:
        await svc.remove_game(identity, game_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return Response(status_code=204)
