"""LabelReconciler tests — get-or-create, per-owner scoping, and the insert race.

Learn: These run against the service directly with a real session.
The race is reproduced deterministically: a row for "Strategy" already
exists, but _find_existing is patched to miss it, exactly as if another
request had inserted it between our read and our insert.
"""

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from gameshelf.auth.password import hash_password
from gameshelf.db.models import Label, User
from gameshelf.services.label_service import LabelReconciler


async def _make_user(db, email: str) -> User:
    user = User(email=email, name="Label Tester", password_hash=hash_password("pw-12345678", rounds=4))
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture()
async def owner(db_session):
    return await _make_user(db_session, "labels-owner@example.com")


async def _count(db, owner_id: int, name: str | None = None) -> int:
    query = select(func.count(Label.id)).where(Label.user_id == owner_id)
    if name is not None:
        query = query.where(Label.name == name)
    return (await db.execute(query)).scalar_one()


@pytest.mark.asyncio
async def test_empty_names_return_empty_without_querying():
    db = AsyncMock()
    reconciler = LabelReconciler(db)

    assert await reconciler.reconcile(1, []) == []
    db.execute.assert_not_awaited()
    db.add.assert_not_called()


@pytest.mark.asyncio
async def test_creates_missing_labels(db_session, owner):
    reconciler = LabelReconciler(db_session)

    labels = await reconciler.reconcile(owner.id, {"Strategy", "Euro"})
    await db_session.commit()

    assert [label.name for label in labels] == ["Euro", "Strategy"]
    assert all(label.id is not None for label in labels)
    assert await _count(db_session, owner.id) == 2


@pytest.mark.asyncio
async def test_reconcile_is_idempotent(db_session, owner):
    reconciler = LabelReconciler(db_session)

    first = await reconciler.reconcile(owner.id, {"Strategy", "Euro"})
    await db_session.commit()
    second = await reconciler.reconcile(owner.id, {"Euro", "Strategy"})
    await db_session.commit()

    assert {l.name: l.id for l in first} == {l.name: l.id for l in second}
    assert await _count(db_session, owner.id) == 2


@pytest.mark.asyncio
async def test_mixes_existing_and_new(db_session, owner):
    reconciler = LabelReconciler(db_session)
    (strategy,) = await reconciler.reconcile(owner.id, {"Strategy"})
    await db_session.commit()

    labels = await reconciler.reconcile(owner.id, {"Strategy", "New"})
    await db_session.commit()

    by_name = {label.name: label for label in labels}
    assert set(by_name) == {"New", "Strategy"}
    assert by_name["Strategy"].id == strategy.id
    assert await _count(db_session, owner.id) == 2


@pytest.mark.asyncio
async def test_labels_are_scoped_per_owner(db_session, owner):
    other = await _make_user(db_session, "labels-other@example.com")
    reconciler = LabelReconciler(db_session)

    (mine,) = await reconciler.reconcile(owner.id, {"Strategy"})
    (theirs,) = await reconciler.reconcile(other.id, {"Strategy"})
    await db_session.commit()

    assert mine.id != theirs.id
    assert mine.user_id == owner.id
    assert theirs.user_id == other.id


@pytest.mark.asyncio
async def test_names_are_case_sensitive(db_session, owner):
    reconciler = LabelReconciler(db_session)

    labels = await reconciler.reconcile(owner.id, {"strategy", "Strategy"})
    await db_session.commit()

    assert len(labels) == 2
    assert await _count(db_session, owner.id) == 2


@pytest.mark.asyncio
async def test_concurrent_insert_returns_winners_row(db_session, owner):
    winner = Label(user_id=owner.id, name="Strategy")
    db_session.add(winner)
    await db_session.commit()

    reconciler = LabelReconciler(db_session)
    with patch.object(reconciler, "_find_existing", AsyncMock(return_value=[])):
        labels = await reconciler.reconcile(owner.id, {"Strategy", "Euro"})
    await db_session.commit()

    by_name = {label.name: label for label in labels}
    assert by_name["Strategy"].id == winner.id
    assert by_name["Euro"].id is not None
    assert await _count(db_session, owner.id, "Strategy") == 1
    assert await _count(db_session, owner.id) == 2


@pytest.mark.asyncio
async def test_list_labels_sorted_by_name(db_session, owner):
    reconciler = LabelReconciler(db_session)
    await reconciler.reconcile(owner.id, {"Zoo", "Abstract", "Party"})
    await db_session.commit()

    names = [label.name for label in await reconciler.list_labels(owner.id)]
    assert names == ["Abstract", "Party", "Zoo"]
