"""Review API tests.

Learn: Tests cover the review lifecycle and the ownership rules:
1. Create → one review per user per game (second attempt → 409)
2. Public reads: single review, a game's reviews with count + average
3. Owner-only update/delete: another user gets 403, a missing review 404
4. Validation: rating must be 1-5
"""

import pytest


def _auth(tokens: dict) -> dict:
    return {"Authorization": f"Bearer {tokens['access_token']}"}


async def _create(client, tokens, game_id=101, rating=4, text="Great table presence"):
    r = await client.post(
        "/api/v1/reviews",
        json={"game_id": game_id, "rating": rating, "review_text": text},
        headers=_auth(tokens),
    )
    assert r.status_code == 201, r.text
    return r.json()


# ═══════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_review(client, register):
    alice = await register(name="Alice")

    review = await _create(client, alice)

    assert review["user_id"] == alice["user"]["id"]
    assert review["user_name"] == "Alice"
    assert review["game_id"] == 101
    assert review["rating"] == 4
    assert review["review_text"] == "Great table presence"


@pytest.mark.asyncio
async def test_create_requires_auth(client):
    r = await client.post("/api/v1/reviews", json={"game_id": 1, "rating": 3})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_duplicate_review_conflicts(client, register):
    alice = await register()
    await _create(client, alice, game_id=7)

    r = await client.post(
        "/api/v1/reviews",
        json={"game_id": 7, "rating": 2},
        headers=_auth(alice),
    )
    assert r.status_code == 409


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 6, -1])
async def test_rating_out_of_range(client, register, rating):
    alice = await register()
    r = await client.post(
        "/api/v1/reviews",
        json={"game_id": 1, "rating": rating},
        headers=_auth(alice),
    )
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_get_review_is_public(client, register):
    alice = await register()
    review = await _create(client, alice)

    r = await client.get(f"/api/v1/reviews/{review['id']}")
    assert r.status_code == 200
    assert r.json()["id"] == review["id"]


@pytest.mark.asyncio
async def test_get_missing_review(client):
    r = await client.get("/api/v1/reviews/99999")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_list_my_reviews(client, register):
    alice = await register()
    bob = await register()
    await _create(client, alice, game_id=1)
    await _create(client, alice, game_id=2)
    await _create(client, bob, game_id=1)

    r = await client.get("/api/v1/reviews/me", headers=_auth(alice))
    assert r.status_code == 200
    reviews = r.json()
    assert {rv["game_id"] for rv in reviews} == {1, 2}
    assert all(rv["user_id"] == alice["user"]["id"] for rv in reviews)


@pytest.mark.asyncio
async def test_game_reviews_with_average(client, register):
    alice = await register()
    bob = await register()
    await _create(client, alice, game_id=55, rating=5)
    await _create(client, bob, game_id=55, rating=2)

    r = await client.get("/api/v1/reviews/games/55")
    assert r.status_code == 200
    body = r.json()
    assert body["total_count"] == 2
    assert body["average_rating"] == pytest.approx(3.5)


@pytest.mark.asyncio
async def test_game_without_reviews(client):
    r = await client.get("/api/v1/reviews/games/424242")
    assert r.status_code == 200
    assert r.json() == {"reviews": [], "total_count": 0, "average_rating": None}


# ═══════════════════════════════════════════════════════════
# Ownership
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_only_owner_can_update_or_delete(client, register):
    alice = await register(name="Alice")
    bob = await register(name="Bob")
    review = await _create(client, alice, game_id=1001, rating=3)
    url = f"/api/v1/reviews/{review['id']}"

    r = await client.put(url, json={"rating": 1}, headers=_auth(bob))
    assert r.status_code == 403

    r = await client.delete(url, headers=_auth(bob))
    assert r.status_code == 403

    # Unchanged after Bob's attempts
    r = await client.get(url)
    assert r.json()["rating"] == 3

    r = await client.put(
        url, json={"rating": 5, "review_text": "Grew on me"}, headers=_auth(alice)
    )
    assert r.status_code == 200
    assert r.json()["rating"] == 5
    assert r.json()["review_text"] == "Grew on me"

    r = await client.delete(url, headers=_auth(alice))
    assert r.status_code == 204

    r = await client.get(url)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_update_missing_review(client, register):
    alice = await register()
    r = await client.put(
        "/api/v1/reviews/99999", json={"rating": 4}, headers=_auth(alice)
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_requires_auth(client, register):
    alice = await register()
    review = await _create(client, alice)

    r = await client.delete(f"/api/v1/reviews/{review['id']}")
    assert r.status_code == 401
