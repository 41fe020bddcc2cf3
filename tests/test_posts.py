from datetime import datetime

from sqlalchemy import func, select

from devsnippet.models import PostLike
from devsnippet.services.post_service import PostService
from utils import API, auth


async def create_post(client, token, **fields):
    payload = {"title": "Hi", "content": "World", **fields}
    response = await client.post(f"{API}/posts", json=payload, headers=auth(token))
    assert response.status_code == 201, response.text
    return response.json()


async def test_register_post_and_like_scenario(client, register):
    alice_token, alice = await register("alice", "a@x.com", "secret1")
    bob_token, bob = await register("bob")

    post = await create_post(client, alice_token, title="Hi", content="World")
    assert post["author"]["username"] == "alice"
    assert post["author_id"] == alice["id"]
    assert post["likes"] == []
    assert post["media_type"] == "none"
    assert post["is_downloadable"] is True
    assert post["tags"] == []

    liked = await client.put(f"{API}/posts/{post['id']}/like", headers=auth(bob_token))
    assert liked.status_code == 200
    assert liked.json()["likes"] == [bob["id"]]

    unliked = await client.put(f"{API}/posts/{post['id']}/like", headers=auth(bob_token))
    assert unliked.json()["likes"] == []


async def test_list_is_newest_first_with_author_summary(client, register):
    token, _ = await register("alice")
    await client.put(f"{API}/auth/profile", json={"bio": "writes things"}, headers=auth(token))
    first = await create_post(client, token, title="first")
    second = await create_post(client, token, title="second")

    response = await client.get(f"{API}/posts")

    assert response.status_code == 200
    posts = response.json()
    assert [p["id"] for p in posts] == [second["id"], first["id"]]
    assert posts[0]["author"] == {
        "id": posts[0]["author_id"],
        "username": "alice",
        "profile_pic": None,
        "bio": "writes things",
    }


async def test_get_post(client, register):
    token, _ = await register("alice")
    post = await create_post(client, token, tags=["python", "fastapi"])

    found = await client.get(f"{API}/posts/{post['id']}")
    missing = await client.get(f"{API}/posts/does-not-exist")

    assert found.status_code == 200
    assert found.json()["tags"] == ["python", "fastapi"]
    assert missing.status_code == 404
    assert missing.json() == {"message": "Post not found"}


async def test_create_requires_session_and_fields(client, register):
    anonymous = await client.post(f"{API}/posts", json={"title": "Hi", "content": "World"})
    token, _ = await register("alice")
    no_title = await client.post(f"{API}/posts", json={"content": "World"}, headers=auth(token))
    empty_content = await client.post(
        f"{API}/posts", json={"title": "Hi", "content": ""}, headers=auth(token)
    )

    assert anonymous.status_code == 401
    assert no_title.status_code == 400
    assert empty_content.status_code == 400


async def test_partial_update_keeps_omitted_and_overwrites_empty(client, register):
    token, _ = await register("alice")
    post = await create_post(client, token, title="Hi", content="World", tags=["a"])

    response = await client.put(
        f"{API}/posts/{post['id']}",
        json={"content": "", "title": None},
        headers=auth(token),
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["title"] == "Hi"
    assert updated["content"] == ""
    assert updated["tags"] == ["a"]
    assert updated["is_downloadable"] is True
    assert updated["created_at"] == post["created_at"]
    assert datetime.fromisoformat(updated["updated_at"]) > datetime.fromisoformat(
        post["updated_at"]
    )


async def test_ownership_gate(client, register, admin):
    author_token, _ = await register("alice")
    stranger_token, _ = await register("mallory")
    admin_token, _ = admin
    post = await create_post(client, author_token)

    stranger_edit = await client.put(
        f"{API}/posts/{post['id']}", json={"title": "pwned"}, headers=auth(stranger_token)
    )
    stranger_delete = await client.delete(
        f"{API}/posts/{post['id']}", headers=auth(stranger_token)
    )
    author_edit = await client.put(
        f"{API}/posts/{post['id']}", json={"title": "mine"}, headers=auth(author_token)
    )
    admin_edit = await client.put(
        f"{API}/posts/{post['id']}", json={"title": "moderated"}, headers=auth(admin_token)
    )
    admin_delete = await client.delete(f"{API}/posts/{post['id']}", headers=auth(admin_token))

    assert stranger_edit.status_code == 403
    assert stranger_edit.json() == {"message": "Not authorized"}
    assert stranger_delete.status_code == 403
    assert author_edit.status_code == 200
    assert admin_edit.status_code == 200
    assert admin_edit.json()["author_id"] == post["author_id"]
    assert admin_delete.status_code == 200


async def test_author_can_delete(client, register):
    token, _ = await register("alice")
    post = await create_post(client, token)

    response = await client.delete(f"{API}/posts/{post['id']}", headers=auth(token))

    assert response.status_code == 200
    assert (await client.get(f"{API}/posts/{post['id']}")).status_code == 404


async def test_update_missing_post_is_not_found(client, register):
    token, _ = await register("alice")
    response = await client.put(f"{API}/posts/nope", json={"title": "x"}, headers=auth(token))
    assert response.status_code == 404


async def test_delete_releases_media_with_resource_type(client, register, media):
    token, _ = await register("alice")
    video = await create_post(
        client, token, media_url="https://cdn/v.mp4", media_type="video", media_public_id="posts/v"
    )
    image = await create_post(
        client, token, media_url="https://cdn/i.png", media_type="image", media_public_id="posts/i"
    )
    bare = await create_post(client, token)

    for post in (video, image, bare):
        response = await client.delete(f"{API}/posts/{post['id']}", headers=auth(token))
        assert response.status_code == 200

    assert media.destroyed == [("posts/v", "video"), ("posts/i", "image")]


async def test_delete_succeeds_when_media_host_fails(client, register, media):
    token, _ = await register("alice")
    post = await create_post(
        client, token, media_url="https://cdn/i.png", media_type="image", media_public_id="posts/i"
    )
    media.fail = True

    response = await client.delete(f"{API}/posts/{post['id']}", headers=auth(token))

    assert response.status_code == 200
    assert media.destroyed == [("posts/i", "image")]
    assert (await client.get(f"{API}/posts/{post['id']}")).status_code == 404


async def test_replacing_media_releases_old_reference(client, register, media):
    token, _ = await register("alice")
    post = await create_post(
        client, token, media_url="https://cdn/1.png", media_type="image", media_public_id="posts/1"
    )

    same = await client.put(
        f"{API}/posts/{post['id']}", json={"media_public_id": "posts/1"}, headers=auth(token)
    )
    replaced = await client.put(
        f"{API}/posts/{post['id']}",
        json={"media_url": "https://cdn/2.mp4", "media_type": "video", "media_public_id": "posts/2"},
        headers=auth(token),
    )

    assert same.status_code == 200
    assert replaced.json()["media_public_id"] == "posts/2"
    assert replaced.json()["media_type"] == "video"
    assert media.destroyed == [("posts/1", "image")]


async def test_camel_case_media_body_is_stored_together(client, register, media):
    token, _ = await register("alice")
    response = await client.post(
        f"{API}/posts",
        json={
            "title": "Hi",
            "content": "World",
            "mediaUrl": "https://m/x.mp4",
            "mediaType": "video",
            "publicId": "vid1",
            "isDownloadable": False,
        },
        headers=auth(token),
    )

    assert response.status_code == 201
    post = response.json()
    assert post["media_url"] == "https://m/x.mp4"
    assert post["media_type"] == "video"
    assert post["media_public_id"] == "vid1"
    assert post["is_downloadable"] is False

    await client.delete(f"{API}/posts/{post['id']}", headers=auth(token))
    assert media.destroyed == [("vid1", "video")]


async def test_camel_case_update_replaces_media(client, register, media):
    token, _ = await register("alice")
    post = await create_post(client, token, mediaUrl="https://m/1.png", mediaType="image", publicId="img1")

    response = await client.put(
        f"{API}/posts/{post['id']}",
        json={"mediaUrl": "https://m/2.mp4", "mediaType": "video", "publicId": "vid2", "isDownloadable": False},
        headers=auth(token),
    )

    body = response.json()
    assert body["media_url"] == "https://m/2.mp4"
    assert body["media_type"] == "video"
    assert body["media_public_id"] == "vid2"
    assert body["is_downloadable"] is False
    assert media.destroyed == [("img1", "image")]


async def test_like_requires_session_and_existing_post(client, register):
    token, _ = await register("alice")

    anonymous = await client.put(f"{API}/posts/whatever/like")
    missing = await client.put(f"{API}/posts/whatever/like", headers=auth(token))

    assert anonymous.status_code == 401
    assert missing.status_code == 404


async def test_double_toggle_restores_likes(client, register):
    alice_token, alice = await register("alice")
    bob_token, bob = await register("bob")
    post = await create_post(client, alice_token)
    await client.put(f"{API}/posts/{post['id']}/like", headers=auth(alice_token))

    once = await client.put(f"{API}/posts/{post['id']}/like", headers=auth(bob_token))
    twice = await client.put(f"{API}/posts/{post['id']}/like", headers=auth(bob_token))

    assert once.json()["likes"] == [alice["id"], bob["id"]]
    assert twice.json()["likes"] == [alice["id"]]


async def count_likes(db, post_id, user_id=None):
    query = select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id)
    if user_id is not None:
        query = query.where(PostLike.user_id == user_id)
    return (await db.execute(query)).scalar_one()


async def test_racing_likes_never_duplicate(client, register, db):
    """Two toggles that both observed "not liked" both try to add."""
    token, _ = await register("alice")
    _, bob = await register("bob")
    post = await create_post(client, token)

    first = await PostService.add_like(db, post["id"], bob["id"])
    second = await PostService.add_like(db, post["id"], bob["id"])
    await db.commit()

    assert first is True
    assert second is False
    assert await count_likes(db, post["id"], bob["id"]) == 1


async def test_racing_unlikes_never_remove_other_likes(client, register, db):
    """Two toggles that both observed "liked" both try to remove."""
    token, alice = await register("alice")
    _, bob = await register("bob")
    post = await create_post(client, token)
    await PostService.add_like(db, post["id"], alice["id"])
    await PostService.add_like(db, post["id"], bob["id"])

    first = await PostService.remove_like(db, post["id"], bob["id"])
    second = await PostService.remove_like(db, post["id"], bob["id"])
    await db.commit()

    assert first is True
    assert second is False
    assert await count_likes(db, post["id"], bob["id"]) == 0
    assert await count_likes(db, post["id"], alice["id"]) == 1
