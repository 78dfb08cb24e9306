"""Blacklist, wiki, relationships, blog and portfolio admin routes over HTTP."""

from uuid import uuid4

import pytest

# --- Blacklist ---


def test_blacklist_pagination(client, auth_headers):
    for i in range(12):
        response = client.post(
            "/api/admin/blacklist", json={"username": f"user{i:02d}"}, headers=auth_headers
        )
        assert response.status_code == 201

    page = client.get("/api/admin/blacklist?page=3&pageSize=5", headers=auth_headers).json()
    assert page["total"] == 12
    assert page["page"] == 3
    assert page["pageSize"] == 5
    assert len(page["data"]) == 2


def test_blacklist_bad_page_values_are_clamped(client, auth_headers):
    page = client.get("/api/admin/blacklist?page=abc&pageSize=-1", headers=auth_headers).json()
    assert page["page"] == 1
    assert page["pageSize"] == 1


def test_blacklist_duplicate_ignoring_case(client, auth_headers):
    client.post("/api/admin/blacklist", json={"username": "Spammer"}, headers=auth_headers)
    response = client.post(
        "/api/admin/blacklist", json={"username": "spammer"}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"]["errors"][0]["code"] == "username_exists"


def test_blacklist_update_and_remove(client, auth_headers):
    entry = client.post(
        "/api/admin/blacklist", json={"username": "old", "reasoning": "x"}, headers=auth_headers
    ).json()
    url = f"/api/admin/blacklist/{entry['id']}"

    updated = client.patch(url, json={"username": "new"}, headers=auth_headers)
    assert updated.json()["username"] == "new"
    assert client.delete(url, headers=auth_headers).status_code == 204
    assert client.delete(url, headers=auth_headers).status_code == 404


# --- Wiki ---


@pytest.fixture
def story(client, auth_headers):
    response = client.post(
        "/api/admin/wiki/stories",
        json={"title": "The Long Night", "is_published": True},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def world(client, auth_headers, story):
    response = client.post(
        f"/api/admin/wiki/stories/{story['id']}/worlds",
        json={"name": "Ashfall"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def _character(client, auth_headers, world, name):
    response = client.post(
        f"/api/admin/wiki/worlds/{world['id']}/characters",
        json={"name": name},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_wiki_tree(client, auth_headers, story, world):
    vess = _character(client, auth_headers, world, "Vess")
    assert vess["slug"] == "vess"

    listed = client.get(f"/api/admin/wiki/worlds/{world['id']}/characters", headers=auth_headers)
    assert [c["id"] for c in listed.json()] == [vess["id"]]


def test_wiki_unknown_collection(client, auth_headers, story):
    response = client.get(f"/api/admin/wiki/stories/{story['id']}/dragons", headers=auth_headers)
    assert response.status_code == 404


def test_wiki_wrong_child_collection(client, auth_headers, story):
    response = client.post(
        f"/api/admin/wiki/stories/{story['id']}/characters",
        json={"name": "Vess"},
        headers=auth_headers,
    )
    assert response.status_code == 404


def test_wiki_soft_delete(client, auth_headers, world):
    vess = _character(client, auth_headers, world, "Vess")
    url = f"/api/admin/wiki/characters/{vess['id']}"

    assert client.delete(url, headers=auth_headers).status_code == 204
    assert client.get(url, headers=auth_headers).status_code == 404
    # the slug is free again
    again = _character(client, auth_headers, world, "Vess")
    assert again["slug"] == "vess"


def test_wiki_slug_immutable(client, auth_headers, world):
    vess = _character(client, auth_headers, world, "Vess")
    response = client.patch(
        f"/api/admin/wiki/characters/{vess['id']}", json={"slug": "other"}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"]["errors"][0]["code"] == "slug_immutable"


def test_wiki_memberships(client, auth_headers, world):
    vess = _character(client, auth_headers, world, "Vess")
    guild = client.post(
        f"/api/admin/wiki/worlds/{world['id']}/factions",
        json={"name": "Guild"},
        headers=auth_headers,
    ).json()

    payload = {"character_id": vess["id"], "faction_id": guild["id"], "role": "Spy"}
    created = client.post("/api/admin/wiki/memberships", json=payload, headers=auth_headers)
    assert created.status_code == 201
    duplicate = client.post("/api/admin/wiki/memberships", json=payload, headers=auth_headers)
    assert duplicate.status_code == 400

    listed = client.get(
        f"/api/admin/wiki/factions/{guild['id']}/memberships", headers=auth_headers
    ).json()
    assert [m["role"] for m in listed] == ["Spy"]


# --- Relationships ---


def test_relationship_flow(client, auth_headers, world):
    alice = _character(client, auth_headers, world, "Alice")
    bob = _character(client, auth_headers, world, "Bob")
    rel_type = client.post(
        "/api/admin/relationships/types",
        json={"name": "Mentor of", "reverse_name": "Student of", "is_mutual": False},
        headers=auth_headers,
    ).json()

    payload = {
        "character_a_id": alice["id"],
        "character_b_id": bob["id"],
        "relationship_type_id": rel_type["id"],
    }
    created = client.post("/api/admin/relationships", json=payload, headers=auth_headers)
    assert created.status_code == 201

    reverse = {**payload, "character_a_id": bob["id"], "character_b_id": alice["id"]}
    duplicate = client.post("/api/admin/relationships", json=reverse, headers=auth_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"]["errors"][0]["code"] == "duplicate_relationship"

    views = client.get(f"/api/admin/relationships/characters/{bob['id']}", headers=auth_headers)
    [view] = views.json()
    assert view["label"] == "Student of"
    assert view["other_character_id"] == alice["id"]

    type_url = f"/api/admin/relationships/types/{rel_type['id']}"
    deleted = client.delete(type_url, headers=auth_headers)
    assert deleted.status_code == 204
    views = client.get(f"/api/admin/relationships/characters/{bob['id']}", headers=auth_headers)
    assert views.json() == []


def test_relationship_missing_is_404(client, auth_headers):
    response = client.get(f"/api/admin/relationships/{uuid4()}", headers=auth_headers)
    assert response.status_code == 404


# --- Blog & portfolio ---


def test_blog_publish_cycle(client, auth_headers):
    post = client.post(
        "/api/admin/blog", json={"title": "Hello", "content": "World"}, headers=auth_headers
    ).json()
    assert post["published_at"] is None

    published = client.post(f"/api/admin/blog/{post['id']}/publish", headers=auth_headers)
    assert published.json()["published_at"] is not None

    drafted = client.post(f"/api/admin/blog/{post['id']}/unpublish", headers=auth_headers)
    assert drafted.json()["published_at"] is None


def test_portfolio_writing_word_count(client, auth_headers):
    response = client.post(
        "/api/admin/portfolio/writing",
        json={"title": "Salt Roads", "content": "The caravan left at dawn."},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["word_count"] == 5


def test_portfolio_art_requires_image(client, auth_headers):
    response = client.post(
        "/api/admin/portfolio/art", json={"title": "Blank", "image_url": " "}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"]["errors"][0]["code"] == "image_url_required"


# --- Explicit nulls on update ---


def test_relationship_update_with_nulls_is_400(client, auth_headers, world):
    alice = _character(client, auth_headers, world, "Alice")
    bob = _character(client, auth_headers, world, "Bob")
    rel_type = client.post(
        "/api/admin/relationships/types", json={"name": "Rival"}, headers=auth_headers
    ).json()
    rel = client.post(
        "/api/admin/relationships",
        json={
            "character_a_id": alice["id"],
            "character_b_id": bob["id"],
            "relationship_type_id": rel_type["id"],
        },
        headers=auth_headers,
    ).json()

    for field in ("relationship_type_id", "is_mutual"):
        response = client.patch(
            f"/api/admin/relationships/{rel['id']}", json={field: None}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == f"{field}_invalid"

    response = client.patch(
        f"/api/admin/relationships/types/{rel_type['id']}",
        json={"is_mutual": None},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_membership_update_with_null_flag_is_400(client, auth_headers, world):
    vess = _character(client, auth_headers, world, "Vess")
    guild = client.post(
        f"/api/admin/wiki/worlds/{world['id']}/factions",
        json={"name": "Guild"},
        headers=auth_headers,
    ).json()
    membership = client.post(
        "/api/admin/wiki/memberships",
        json={"character_id": vess["id"], "faction_id": guild["id"]},
        headers=auth_headers,
    ).json()

    url = f"/api/admin/wiki/memberships/{membership['id']}"
    response = client.patch(url, json={"is_current": None}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["errors"][0]["code"] == "is_current_invalid"
    assert client.patch(url, json={"role": None}, headers=auth_headers).status_code == 200


def test_writing_update_with_null_flag_is_400(client, auth_headers):
    piece = client.post(
        "/api/admin/portfolio/writing",
        json={"title": "Salt Roads", "content": "The caravan left at dawn."},
        headers=auth_headers,
    ).json()
    for field in ("is_featured", "display_order"):
        response = client.patch(
            f"/api/admin/portfolio/writing/{piece['id']}", json={field: None}, headers=auth_headers
        )
        assert response.status_code == 400, field


# --- Character gallery and outfits ---


def test_gallery_flow(client, auth_headers, world):
    vess = _character(client, auth_headers, world, "Vess")
    base = f"/api/admin/wiki/characters/{vess['id']}/gallery"

    ids = []
    for title in ("Sketch", "Portrait"):
        response = client.post(
            base, json={"title": title, "image_url": f"g/{title}.png"}, headers=auth_headers
        )
        assert response.status_code == 201, response.text
        ids.append(response.json()["id"])

    reordered = client.put(
        f"{base}/order", json={"item_ids": list(reversed(ids))}, headers=auth_headers
    )
    assert [i["title"] for i in reordered.json()] == ["Portrait", "Sketch"]

    bad_order = client.put(f"{base}/order", json={"item_ids": ids[:1]}, headers=auth_headers)
    assert bad_order.status_code == 400
    assert bad_order.json()["detail"]["errors"][0]["code"] == "gallery_order_invalid"

    item_url = f"/api/admin/wiki/gallery/{ids[0]}"
    updated = client.patch(item_url, json={"artist_name": "Rook"}, headers=auth_headers)
    assert updated.json()["artist_name"] == "Rook"
    assert client.delete(item_url, headers=auth_headers).status_code == 204
    assert client.delete(item_url, headers=auth_headers).status_code == 404
    assert [i["title"] for i in client.get(base, headers=auth_headers).json()] == ["Portrait"]


def test_gallery_for_unknown_character_is_404(client, auth_headers):
    url = f"/api/admin/wiki/characters/{uuid4()}/gallery"
    assert client.get(url, headers=auth_headers).status_code == 404
    response = client.post(url, json={"title": "A", "image_url": "a.png"}, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.parametrize("field", ["image_url", "title", "is_featured", "display_order"])
def test_gallery_update_with_null_is_400(client, auth_headers, world, field):
    vess = _character(client, auth_headers, world, "Vess")
    item = client.post(
        f"/api/admin/wiki/characters/{vess['id']}/gallery",
        json={"title": "Sketch", "image_url": "g/sketch.png"},
        headers=auth_headers,
    ).json()
    response = client.patch(
        f"/api/admin/wiki/gallery/{item['id']}", json={field: None}, headers=auth_headers
    )
    assert response.status_code == 400


def test_outfit_flow(client, auth_headers, world):
    vess = _character(client, auth_headers, world, "Vess")
    formal = client.post(
        "/api/admin/wiki/outfit-types", json={"name": "Formal"}, headers=auth_headers
    )
    assert formal.status_code == 201, formal.text
    assert formal.json()["slug"] == "formal"
    types = client.get("/api/admin/wiki/outfit-types", headers=auth_headers).json()
    assert [t["slug"] for t in types] == ["formal"]

    base = f"/api/admin/wiki/characters/{vess['id']}/outfits"
    gala = client.post(
        base,
        json={"name": "Gala", "outfit_type_id": formal.json()["id"], "is_default": True},
        headers=auth_headers,
    )
    assert gala.status_code == 201, gala.text
    road = client.post(base, json={"name": "Road", "is_default": True}, headers=auth_headers)
    listed = {o["name"]: o["is_default"] for o in client.get(base, headers=auth_headers).json()}
    assert listed == {"Gala": False, "Road": True}

    outfit_url = f"/api/admin/wiki/outfits/{road.json()['id']}"
    assert client.patch(outfit_url, json={"name": None}, headers=auth_headers).status_code == 400
    assert client.delete(outfit_url, headers=auth_headers).status_code == 204

    type_url = f"/api/admin/wiki/outfit-types/{formal.json()['id']}"
    assert client.delete(type_url, headers=auth_headers).status_code == 204
    remaining = client.get(base, headers=auth_headers).json()
    assert [(o["name"], o["outfit_type_id"]) for o in remaining] == [("Gala", None)]


def test_outfit_with_unknown_type_is_404(client, auth_headers, world):
    vess = _character(client, auth_headers, world, "Vess")
    response = client.post(
        f"/api/admin/wiki/characters/{vess['id']}/outfits",
        json={"name": "Gala", "outfit_type_id": str(uuid4())},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json()["detail"]["errors"][0]["code"] == "outfit_type_not_found"
