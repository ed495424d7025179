"""Tests for community posts and comment thread endpoints."""

from unittest.mock import patch

from conftest import TEST_USER, ts


def seed_post(fake_db, post_id="post-1", minute=0, content="Looking for a technical cofounder", tags=("hiring",)):
    fake_db.seed("posts", post_id, {
        "author": {"name": "Grace", "title": "CEO", "company": "Compilers Inc"},
        "content": content,
        "likes": 3,
        "comments": 0,
        "shares": 0,
        "tags": list(tags),
        "created_at": ts(minute),
    })


def seed_comment(fake_db, comment_id, parent_id=None, minute=0, post_id="post-1"):
    fake_db.seed(f"posts/{post_id}/comments", comment_id, {
        "post_id": post_id,
        "parent_id": parent_id,
        "author": {"name": "Linus"},
        "content": f"reply {comment_id}",
        "likes": 0,
        "created_at": ts(minute),
    })


def test_list_posts_newest_first_with_filters(client, fake_db) -> None:
    seed_post(fake_db, "old", 0, "Pitch deck feedback wanted", ["fundraising"])
    seed_post(fake_db, "new", 10, "Hiring a founding engineer", ["hiring", "engineering"])

    resp = client.get("/posts/")
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == ["new", "old"]

    assert [p["id"] for p in client.get("/posts/", params={"q": "PITCH"}).json()] == ["old"]
    assert [p["id"] for p in client.get("/posts/", params={"tag": "hiring"}).json()] == ["new"]
    assert len(client.get("/posts/", params={"tag": "all"}).json()) == 2


def test_list_posts_skips_invalid_rows(client, fake_db) -> None:
    seed_post(fake_db, "good")
    fake_db.seed("posts", "broken", {"content": "no author", "created_at": ts(5)})
    assert [p["id"] for p in client.get("/posts/").json()] == ["good"]


def test_post_tags_are_sorted_and_unique(client, fake_db) -> None:
    seed_post(fake_db, "a", 0, tags=["saas", "hiring"])
    seed_post(fake_db, "b", 1, tags=["hiring", "ai"])
    assert client.get("/posts/tags").json() == ["ai", "hiring", "saas"]


def test_get_missing_post_is_404(client) -> None:
    assert client.get("/posts/nope").status_code == 404


def test_create_post_requires_auth(client) -> None:
    assert client.post("/posts/", data={"content": "hi"}).status_code == 401


def test_create_post_uses_profile_as_author(auth_client, fake_db) -> None:
    fake_db.seed("profiles", TEST_USER.username, {"name": "Ada Lovelace", "title": "Founder", "company": "Engines"})
    resp = auth_client.post("/posts/", data={"content": "  Demo day next week  ", "tags": "events, demo, events"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["author"]["name"] == "Ada Lovelace"
    assert body["author"]["company"] == "Engines"
    assert body["content"] == "Demo day next week"
    assert body["tags"] == ["events", "demo"]
    assert body["comments"] == 0
    assert body["id"] in fake_db.rows("posts")


def test_create_post_with_image(auth_client, fake_db, fake_gcs) -> None:
    resp = auth_client.post(
        "/posts/",
        data={"content": "Our new office"},
        files={"image_file": ("office.png", b"\x89PNG....", "image/png")},
    )
    assert resp.status_code == 201
    assert resp.json()["image"].startswith("https://storage.googleapis.com/")
    blob_name = fake_gcs.bucket.return_value.blob.call_args[0][0]
    assert blob_name.startswith(f"posts/{TEST_USER.username}/")


def test_create_post_rejects_unsupported_image_type(auth_client) -> None:
    resp = auth_client.post(
        "/posts/",
        data={"content": "slides"},
        files={"image_file": ("deck.pdf", b"%PDF", "application/pdf")},
    )
    assert resp.status_code == 400


def test_comments_are_returned_as_tree(client, fake_db) -> None:
    seed_post(fake_db)
    seed_comment(fake_db, "c1", None, 0)
    seed_comment(fake_db, "c4", "c2", 3)
    seed_comment(fake_db, "c2", "c1", 1)
    seed_comment(fake_db, "c3", "c1", 2)
    seed_comment(fake_db, "orphan", "missing", 4)

    resp = client.get("/posts/post-1/comments/")
    assert resp.status_code == 200
    roots = resp.json()
    assert [c["id"] for c in roots] == ["c1", "orphan"]
    assert [c["id"] for c in roots[0]["children"]] == ["c2", "c3"]
    assert [c["id"] for c in roots[0]["children"][0]["children"]] == ["c4"]


def test_comments_flat_listing(client, fake_db) -> None:
    seed_post(fake_db)
    seed_comment(fake_db, "c2", "c1", 1)
    seed_comment(fake_db, "c1", None, 0)
    resp = client.get("/posts/post-1/comments/", params={"flat": "true"})
    assert [c["id"] for c in resp.json()] == ["c1", "c2"]
    assert all(c["children"] == [] for c in resp.json())


def test_comment_thread_has_depths(client, fake_db) -> None:
    seed_post(fake_db)
    seed_comment(fake_db, "c1", None, 0)
    seed_comment(fake_db, "c2", "c1", 1)
    seed_comment(fake_db, "c3", None, 2)
    resp = client.get("/posts/post-1/comments/thread")
    assert [(e["comment"]["id"], e["depth"]) for e in resp.json()] == [("c1", 0), ("c2", 1), ("c3", 0)]


def test_comments_for_missing_post_is_404(client) -> None:
    assert client.get("/posts/nope/comments/").status_code == 404


def test_get_single_comment(client, fake_db) -> None:
    seed_post(fake_db)
    seed_comment(fake_db, "c1")
    assert client.get("/posts/post-1/comments/c1").json()["content"] == "reply c1"
    assert client.get("/posts/post-1/comments/zzz").status_code == 404


def test_create_reply_increments_comment_count(auth_client, fake_db) -> None:
    seed_post(fake_db)
    seed_comment(fake_db, "c1")
    resp = auth_client.post("/posts/post-1/comments/", json={"content": "Agreed!", "parent_id": "c1"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["parent_id"] == "c1"
    assert body["author"]["name"] == "Ada"
    stored = fake_db.rows("posts/post-1/comments")[body["id"]]
    assert "children" not in stored and "id" not in stored
    assert fake_db.rows("posts")["post-1"]["comments"] == 1


def test_reply_to_comment_of_other_post_is_rejected(auth_client, fake_db) -> None:
    seed_post(fake_db, "post-1")
    seed_post(fake_db, "post-2")
    seed_comment(fake_db, "elsewhere", post_id="post-2")
    resp = auth_client.post("/posts/post-1/comments/", json={"content": "hi", "parent_id": "elsewhere"})
    assert resp.status_code == 400


def test_comment_on_missing_post_is_404(auth_client) -> None:
    assert auth_client.post("/posts/nope/comments/", json={"content": "hi"}).status_code == 404


def test_empty_comment_is_rejected(auth_client, fake_db) -> None:
    seed_post(fake_db)
    assert auth_client.post("/posts/post-1/comments/", json={"content": ""}).status_code == 422


def test_comment_not_stored_when_counter_update_fails(auth_client, fake_db) -> None:
    """The comment and the post's counter are written together or not at all."""
    seed_post(fake_db)
    with patch("conftest.FakeDocument._apply", side_effect=RuntimeError("write failed")):
        resp = auth_client.post("/posts/post-1/comments/", json={"content": "First!"})
    assert resp.status_code == 500
    assert fake_db.rows("posts/post-1/comments") == {}
    assert fake_db.rows("posts")["post-1"]["comments"] == 0


def test_created_comment_gets_fresh_id(auth_client, fake_db) -> None:
    seed_post(fake_db)
    first = auth_client.post("/posts/post-1/comments/", json={"content": "one"}).json()
    second = auth_client.post("/posts/post-1/comments/", json={"content": "two"}).json()
    assert first["id"].startswith("comment-")
    assert first["id"] != second["id"]
    assert set(fake_db.rows("posts/post-1/comments")) == {first["id"], second["id"]}


def test_uploaded_image_deleted_when_post_not_saved(auth_client, fake_db, fake_gcs) -> None:
    with patch("conftest.FakeDocument._write", side_effect=RuntimeError("write failed")):
        resp = auth_client.post(
            "/posts/",
            data={"content": "Our new office"},
            files={"image_file": ("office.png", b"\x89PNG....", "image/png")},
        )
    assert resp.status_code == 500
    fake_gcs.bucket.return_value.blob.assert_called_with("img.png")
    fake_gcs.bucket.return_value.blob.return_value.delete.assert_called_once()
