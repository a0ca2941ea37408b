"""Label reconciliation — get-or-create a user's labels by name.

Learn: Collection entries reference labels by name in the API, rows in
the database. reconcile() maps one to the other without ever creating
a second ("Strategy", user 7) row:

1. fetch the rows that already exist
2. insert only the missing names
3. return existing + new

Two requests can both decide "Strategy" is missing and both insert it.
The UNIQUE(user_id, name) constraint lets exactly one win. Each insert
runs in its own SAVEPOINT, so the loser rolls back just that insert,
reads the winner's row, and carries on. The rest of its transaction
(the collection entry it's building) is untouched.
"""

from typing import Iterable

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gameshelf.db.models import Label

logger = structlog.get_logger()


class LabelReconciler:
    """Maps label names to persisted Label rows for one owner at a time."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def reconcile(self, owner_id: int, names: Iterable[str]) -> list[Label]:
        requested = set(names)
        if not requested:
            return []

        existing = await self._find_existing(owner_id, requested)
        labels = {label.name: label for label in existing}

        for name in sorted(requested - labels.keys()):
            labels[name] = await self._get_or_create(owner_id, name)

        return [labels[name] for name in sorted(labels)]

    async def list_labels(self, owner_id: int) -> list[Label]:
        result = await self.db.execute(
            select(Label).where(Label.user_id == owner_id).order_by(Label.name)
        )
        return list(result.scalars().all())

    async def _find_existing(self, owner_id: int, names: set[str]) -> list[Label]:
        result = await self.db.execute(
            select(Label).where(Label.user_id == owner_id, Label.name.in_(names))
        )
        return list(result.scalars().all())

    async def _get_or_create(self, owner_id: int, name: str) -> Label:
        label = Label(user_id=owner_id, name=name)
        try:
            async with self.db.begin_nested():
                self.db.add(label)
                await self.db.flush()
        except IntegrityError:
            # Another request created it between our read and our insert.
            logger.info("labels.concurrent_create", user_id=owner_id, label=name)
            result = await self.db.execute(
                select(Label).where(Label.user_id == owner_id, Label.name == name)
            )
            return result.scalars().one()
        return label
