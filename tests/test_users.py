"""Tests for profiles, follow toggling, discovery and avatars."""
import os
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import register
from socialsphere.models import Follow, User

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.mark.asyncio
async def test_get_profile_hides_email_from_others(async_client: AsyncClient):
    owner = await register(async_client, "owner")
    viewer = await register(async_client, "viewer")

    own = await async_client.get(f"/api/users/{owner['username']}", headers=owner["headers"])
    assert own.status_code == 200
    assert own.json()["email"] == owner["email"]

    other = await async_client.get(f"/api/users/{owner['username']}", headers=viewer["headers"])
    assert other.status_code == 200
    assert other.json()["email"] is None
    assert other.json()["postsCount"] == 0

    anonymous = await async_client.get(f"/api/users/{owner['username']}")
    assert anonymous.status_code == 200
    assert anonymous.json()["isFollowing"] is False


@pytest.mark.asyncio
async def test_get_profile_unknown_user(async_client: AsyncClient):
    response = await async_client.get("/api/users/nobody_here")
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_get_user_by_id(async_client: AsyncClient):
    owner = await register(async_client, "byid")
    response = await async_client.get(f"/api/users/id/{owner['user']['id']}", headers=owner["headers"])
    assert response.status_code == 200
    assert response.json()["username"] == owner["username"]

    missing = await async_client.get(f"/api/users/id/{uuid4()}", headers=owner["headers"])
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_update_profile(async_client: AsyncClient):
    account = await register(async_client, "upd")
    response = await async_client.put(
        "/api/users/profile",
        json={"name": "  New Name  ", "bio": "Hello there"},
        headers=account["headers"],
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "New Name"
    assert body["bio"] == "Hello there"

    too_long = await async_client.put(
        "/api/users/profile",
        json={"bio": "x" * 301},
        headers=account["headers"],
    )
    assert too_long.status_code == 400


@pytest.mark.asyncio
async def test_follow_toggle_updates_both_sides(async_client: AsyncClient, db_session: AsyncSession):
    alice = await register(async_client, "alice")
    bob = await register(async_client, "bob")
    bob_id = bob["user"]["id"]

    followed = await async_client.post(f"/api/users/{bob_id}/follow", headers=alice["headers"])
    assert followed.status_code == 200
    assert followed.json() == {"following": True, "followerCount": 1, "followingCount": 1}

    bob_profile = (await async_client.get(f"/api/users/{bob['username']}", headers=alice["headers"])).json()
    assert bob_profile["isFollowing"] is True
    assert [u["username"] for u in bob_profile["followers"]] == [alice["username"]]
    alice_profile = (await async_client.get(f"/api/users/{alice['username']}")).json()
    assert [u["username"] for u in alice_profile["following"]] == [bob["username"]]

    unfollowed = await async_client.post(f"/api/users/{bob_id}/follow", headers=alice["headers"])
    assert unfollowed.json() == {"following": False, "followerCount": 0, "followingCount": 0}

    bob_profile = (await async_client.get(f"/api/users/{bob['username']}")).json()
    alice_profile = (await async_client.get(f"/api/users/{alice['username']}")).json()
    assert bob_profile["followers"] == []
    assert bob_profile["followersCount"] == 0
    assert alice_profile["following"] == []
    assert alice_profile["followingCount"] == 0
    assert await db_session.scalar(select(func.count()).select_from(Follow)) == 0


@pytest.mark.asyncio
async def test_cannot_follow_self(async_client: AsyncClient):
    account = await register(async_client, "solo")
    response = await async_client.post(
        f"/api/users/{account['user']['id']}/follow",
        headers=account["headers"],
    )
    assert response.status_code == 400
    assert response.json()["message"] == "You cannot follow yourself"


@pytest.mark.asyncio
async def test_follow_unknown_user(async_client: AsyncClient):
    account = await register(async_client, "lonely")
    response = await async_client.post(f"/api/users/{uuid4()}/follow", headers=account["headers"])
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_search_users(async_client: AsyncClient):
    searcher = await register(async_client, "srch")
    target = await register(async_client, "zelda")

    response = await async_client.get(
        "/api/users/search",
        params={"q": "ZELDA"},
        headers=searcher["headers"],
    )
    assert response.status_code == 200
    assert [u["username"] for u in response.json()] == [target["username"]]

    wildcard = await async_client.get("/api/users/search", params={"q": "%"}, headers=searcher["headers"])
    assert wildcard.json() == []

    empty = await async_client.get("/api/users/search", params={"q": ""}, headers=searcher["headers"])
    assert empty.status_code == 400


@pytest.mark.asyncio
async def test_explore_excludes_self_and_followed(async_client: AsyncClient):
    me = await register(async_client, "me")
    followed = await register(async_client, "fol")
    stranger = await register(async_client, "str")
    await async_client.post(f"/api/users/{followed['user']['id']}/follow", headers=me["headers"])

    response = await async_client.get("/api/users/explore", headers=me["headers"])
    assert response.status_code == 200
    assert [u["username"] for u in response.json()] == [stranger["username"]]


@pytest.mark.asyncio
async def test_upload_profile_picture_replaces_old_file(async_client: AsyncClient, upload_dir: str):
    account = await register(async_client, "pic")

    first = await async_client.post(
        "/api/users/upload-profile-picture",
        files={"avatar": ("me.png", PNG_BYTES, "image/png")},
        headers=account["headers"],
    )
    assert first.status_code == 200
    first_path = first.json()["profilePicture"]
    assert first_path.startswith("/uploads/avatars/")
    first_file = os.path.join(upload_dir, "avatars", first_path.rsplit("/", 1)[1])
    assert os.path.isfile(first_file)

    served = await async_client.get(first_path)
    assert served.status_code == 200
    assert served.content == PNG_BYTES

    second = await async_client.post(
        "/api/users/upload-profile-picture",
        files={"avatar": ("me2.jpg", b"\xff\xd8\xff" + b"\x00" * 32, "image/jpeg")},
        headers=account["headers"],
    )
    assert second.status_code == 200
    assert second.json()["profilePicture"].endswith(".jpg")
    assert not os.path.exists(first_file)

    me = await async_client.get("/api/auth/me", headers=account["headers"])
    assert me.json()["profilePicture"] == second.json()["profilePicture"]


@pytest.mark.asyncio
async def test_upload_profile_picture_rejects_non_images_and_large_files(async_client: AsyncClient):
    account = await register(async_client, "bad")

    text_file = await async_client.post(
        "/api/users/upload-profile-picture",
        files={"avatar": ("notes.txt", b"hello", "text/plain")},
        headers=account["headers"],
    )
    assert text_file.status_code == 400
    assert text_file.json()["message"] == "Only image files are allowed"

    too_big = await async_client.post(
        "/api/users/upload-profile-picture",
        files={"avatar": ("big.png", b"\x00" * (1024 * 1024 + 1), "image/png")},
        headers=account["headers"],
    )
    assert too_big.status_code == 400
    assert too_big.json()["message"] == "File too large. Max 1MB"


@pytest.mark.asyncio
async def test_profile_picture_cannot_point_at_stored_files(async_client: AsyncClient, upload_dir: str):
    victim = await register(async_client, "victim")
    attacker = await register(async_client, "attacker")
    post = await async_client.post(
        "/api/posts",
        data={"content": "My photo"},
        files={"image": ("pic.png", PNG_BYTES, "image/png")},
        headers=victim["headers"],
    )
    victim_image = post.json()["image"]
    victim_file = os.path.join(upload_dir, "posts", victim_image.rsplit("/", 1)[1])

    response = await async_client.put(
        "/api/users/profile",
        json={"profilePicture": victim_image},
        headers=attacker["headers"],
    )
    assert response.status_code == 400

    upload = await async_client.post(
        "/api/users/upload-profile-picture",
        files={"avatar": ("me.png", PNG_BYTES, "image/png")},
        headers=attacker["headers"],
    )
    assert upload.status_code == 200
    assert os.path.isfile(victim_file)


@pytest.mark.asyncio
async def test_profile_picture_accepts_external_url_and_current_value(async_client: AsyncClient):
    account = await register(async_client, "ext")
    external = "https://cdn.example.com/avatars/me.png"
    response = await async_client.put(
        "/api/users/profile",
        json={"profilePicture": external},
        headers=account["headers"],
    )
    assert response.status_code == 200
    assert response.json()["profilePicture"] == external

    upload = await async_client.post(
        "/api/users/upload-profile-picture",
        files={"avatar": ("me.png", PNG_BYTES, "image/png")},
        headers=account["headers"],
    )
    stored = upload.json()["profilePicture"]
    unchanged = await async_client.put(
        "/api/users/profile",
        json={"profilePicture": stored, "bio": "same picture"},
        headers=account["headers"],
    )
    assert unchanged.status_code == 200
    assert unchanged.json()["profilePicture"] == stored


@pytest.mark.asyncio
async def test_avatar_upload_only_replaces_avatar_files(
    async_client: AsyncClient,
    db_session: AsyncSession,
    upload_dir: str,
):
    owner = await register(async_client, "keeper")
    other = await register(async_client, "swapper")
    post = await async_client.post(
        "/api/posts",
        data={"content": "Keep this"},
        files={"image": ("pic.png", PNG_BYTES, "image/png")},
        headers=owner["headers"],
    )
    image = post.json()["image"]
    image_file = os.path.join(upload_dir, "posts", image.rsplit("/", 1)[1])

    # A post image path already on record must survive an avatar replacement
    user = await db_session.scalar(select(User).where(User.username == other["username"]))
    user.profile_picture = image
    await db_session.commit()

    upload = await async_client.post(
        "/api/users/upload-profile-picture",
        files={"avatar": ("me.png", PNG_BYTES, "image/png")},
        headers=other["headers"],
    )
    assert upload.status_code == 200
    assert os.path.isfile(image_file)


@pytest.mark.asyncio
async def test_upload_profile_picture_rejects_svg(async_client: AsyncClient):
    account = await register(async_client, "svg")
    response = await async_client.post(
        "/api/users/upload-profile-picture",
        files={"avatar": ("x.svg", b"<svg xmlns='http://www.w3.org/2000/svg'><script/></svg>", "image/svg+xml")},
        headers=account["headers"],
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Only image files are allowed"
