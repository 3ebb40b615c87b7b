import pytest
from sqlalchemy import select, func

from social_api.models.comment import Comment
from social_api.models.like import Like
from social_api.models.post import Post
from social_api.schemas.user_schema import UserRole


async def publish(client, headers, title="Hello world", content="Some content"):
    return await client.post(
        "/api/v1/posts/",
        json={"title": title, "content": content},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_create_and_get_post(test_client, make_user, auth_headers):
    user = await make_user()

    response = await publish(test_client, auth_headers(user))

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Hello world"
    assert data["user"]["username"] == user.username
    assert data["like_count"] == 0
    assert data["comment_count"] == 0

    response = await test_client.get(f"/api/v1/posts/{data['id']}")
    assert response.status_code == 200
    assert response.json()["id"] == data["id"]
    assert response.json()["liked"] is False


@pytest.mark.asyncio
async def test_create_post_requires_auth(test_client):
    response = await publish(test_client, {})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_second_post_within_cooldown_is_rate_limited(test_client, make_user, auth_headers, fake_timer):
    user = await make_user()
    other = await make_user()
    headers = auth_headers(user)

    assert (await publish(test_client, headers)).status_code == 200

    response = await publish(test_client, headers, title="Too soon")
    assert response.status_code == 429
    assert "Please wait" in response.json()["detail"]

    # Other users are not affected
    assert (await publish(test_client, auth_headers(other))).status_code == 200

    fake_timer.advance(90)
    assert (await publish(test_client, headers, title="Later")).status_code == 200


@pytest.mark.asyncio
async def test_profanity_is_censored(test_client, make_user, auth_headers):
    user = await make_user()

    response = await publish(test_client, auth_headers(user), content="What the shit")

    assert response.json()["content"] == "What the ****"


@pytest.mark.asyncio
async def test_extra_banned_words_are_censored(test_client, make_user, auth_headers, monkeypatch):
    from social_api.services import post_service
    from social_api.utils.content_filter import ContentFilter

    monkeypatch.setattr(post_service, "content_filter", ContentFilter(["darn"]))
    user = await make_user()

    response = await publish(test_client, auth_headers(user), content="Darn it, darnation")

    assert response.json()["content"] == "**** it, darnation"


@pytest.mark.asyncio
async def test_get_missing_post(test_client):
    response = await test_client.get("/api/v1/posts/9999")

    assert response.status_code == 404
    assert response.json()["detail"] == "Post does not exist"


@pytest.mark.asyncio
async def test_list_posts_filters_and_sorts(test_client, test_db, make_user):
    alice = await make_user("alice_writer")
    bob = await make_user("bob_writer")
    test_db.add_all([
        Post(user_id=alice.id, title="Python tips", content="a", like_count=1),
        Post(user_id=alice.id, title="Cooking", content="b", like_count=5),
        Post(user_id=bob.id, title="More python", content="c", like_count=3),
    ])
    await test_db.commit()

    response = await test_client.get("/api/v1/posts/", params={"search": "PYTHON"})
    assert response.json()["total"] == 2

    response = await test_client.get("/api/v1/posts/", params={"author": "alice_writer"})
    assert {p["title"] for p in response.json()["posts"]} == {"Python tips", "Cooking"}

    response = await test_client.get("/api/v1/posts/", params={"sort_by": "likes"})
    assert [p["like_count"] for p in response.json()["posts"]] == [5, 3, 1]

    response = await test_client.get("/api/v1/posts/", params={"limit": 1, "skip": 1, "sort_by": "likes"})
    data = response.json()
    assert data["total"] == 3
    assert [p["like_count"] for p in data["posts"]] == [3]


@pytest.mark.asyncio
async def test_update_post_permissions(test_client, make_user, auth_headers):
    author = await make_user()
    stranger = await make_user()
    moderator = await make_user(role=UserRole.MODERATOR)
    post_id = (await publish(test_client, auth_headers(author))).json()["id"]

    response = await test_client.patch(
        f"/api/v1/posts/{post_id}", json={"title": "Hijacked"}, headers=auth_headers(stranger)
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Permission denied to update the post"

    response = await test_client.patch(
        f"/api/v1/posts/{post_id}", json={"content": "Fixed typo"}, headers=auth_headers(author)
    )
    assert response.status_code == 200
    assert response.json()["content"] == "Fixed typo"
    assert response.json()["title"] == "Hello world"
    assert response.json()["edited"] is True

    response = await test_client.patch(
        f"/api/v1/posts/{post_id}", json={"title": "Moderated"}, headers=auth_headers(moderator)
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Moderated"


@pytest.mark.asyncio
async def test_delete_post_removes_comments_and_likes(test_client, test_db, make_user, auth_headers):
    author = await make_user()
    stranger = await make_user()
    post_id = (await publish(test_client, auth_headers(author))).json()["id"]

    response = await test_client.post(
        f"/api/v1/posts/{post_id}/comments", json={"content": "Hi"}, headers=auth_headers(stranger)
    )
    assert response.status_code == 200
    response = await test_client.post(f"/api/v1/posts/{post_id}/like", headers=auth_headers(stranger))
    assert response.status_code == 200

    response = await test_client.delete(f"/api/v1/posts/{post_id}", headers=auth_headers(stranger))
    assert response.status_code == 403

    response = await test_client.delete(f"/api/v1/posts/{post_id}", headers=auth_headers(author))
    assert response.status_code == 200
    assert response.json()["id"] == post_id
    assert response.json()["comment_count"] == 1
    assert response.json()["like_count"] == 1

    assert (await test_client.get(f"/api/v1/posts/{post_id}")).status_code == 404
    for model in (Post, Comment, Like):
        column = model.id if model is Post else model.post_id
        count = (await test_db.execute(select(func.count()).where(column == post_id))).scalar_one()
        assert count == 0
