from __future__ import annotations

import pytest

pytestmark = pytest.mark.anyio


async def create_group(client, owner, *, name="Algorithms study", is_private=False, files=None) -> dict:
    r = await client.post(
        "/api/v1/groups",
        data={"name": name, "description": "Weekly problem sets", "is_private": str(is_private).lower()},
        files=files,
        headers=owner["headers"],
    )
    assert r.status_code == 201, r.text
    return r.json()


async def get_group(client, group_id, viewer=None) -> dict:
    headers = viewer["headers"] if viewer else {}
    r = await client.get(f"/api/v1/groups/{group_id}", headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


async def request_to_join(client, group_id, user, message="Please let me in"):
    return await client.post(
        f"/api/v1/groups/{group_id}/requests", json={"message": message}, headers=user["headers"]
    )


async def test_creator_sees_enter_and_moderation(client, user_factory, supabase):
    owner = user_factory("Owner")
    group = await create_group(client, owner, is_private=True)

    assert group["created_by"] == owner["id"]
    assert group["is_private"] is True
    assert group["affordance"] == "enter"
    assert group["can_moderate"] is True
    assert group["member_count"] == 0
    assert group["pending_count"] == 0
    assert group["image_url"]  # default cover


async def test_create_group_requires_name_and_description(client, user_factory):
    owner = user_factory()
    r = await client.post(
        "/api/v1/groups",
        data={"name": "   ", "description": "x"},
        headers=owner["headers"],
    )
    assert r.status_code == 400


async def test_create_group_uploads_cover(client, user_factory, supabase):
    owner = user_factory()
    group = await create_group(client, owner, files={"image": ("cover.png", b"\x89PNG...", "image/png")})

    stored = supabase.buckets["images"]
    assert len(stored) == 1
    path = next(iter(stored))
    assert path.startswith(f"{owner['id']}/groups/")
    assert group["image_url"].endswith(path)


async def test_anonymous_viewer_is_asked_to_sign_in(client, user_factory, supabase):
    owner = user_factory()
    group = await create_group(client, owner)

    view = await get_group(client, group["id"])
    assert view["affordance"] == "sign_in"
    assert view["pending_count"] is None

    r = await client.post(f"/api/v1/groups/{group['id']}/join")
    assert r.status_code == 401
    assert r.json()["detail"]["action"] == "sign_in"
    assert supabase.rows("group_members") == []


async def test_public_group_join_is_immediate(client, user_factory, supabase):
    owner = user_factory("Owner")
    member = user_factory("Member")
    group = await create_group(client, owner)

    assert (await get_group(client, group["id"], member))["affordance"] == "join"

    r = await client.post(f"/api/v1/groups/{group['id']}/join", headers=member["headers"])
    assert r.status_code == 200, r.text
    view = r.json()
    assert view["affordance"] == "enter"
    assert view["viewer_status"] == "approved"
    assert view["member_count"] == 1

    rows = supabase.rows("group_members", group_id=group["id"])
    assert [(r["user_id"], r["status"]) for r in rows] == [(member["id"], "approved")]


async def test_joining_twice_is_a_no_op(client, user_factory, supabase):
    owner = user_factory()
    member = user_factory()
    group = await create_group(client, owner)

    await client.post(f"/api/v1/groups/{group['id']}/join", headers=member["headers"])
    r = await client.post(f"/api/v1/groups/{group['id']}/join", headers=member["headers"])
    assert r.status_code == 200
    assert r.json()["member_count"] == 1
    assert len(supabase.rows("group_members", group_id=group["id"])) == 1


async def test_private_group_cannot_be_joined_directly(client, user_factory, supabase):
    owner = user_factory()
    stranger = user_factory()
    group = await create_group(client, owner, is_private=True)

    r = await client.post(f"/api/v1/groups/{group['id']}/join", headers=stranger["headers"])
    assert r.status_code == 400
    assert supabase.rows("group_members") == []


async def test_request_approve_flow(client, user_factory, supabase):
    owner = user_factory("Owner")
    requester = user_factory("Requester")
    group = await create_group(client, owner, is_private=True)
    gid = group["id"]

    assert (await get_group(client, gid, requester))["affordance"] == "request"

    r = await request_to_join(client, gid, requester, "  I am in the same course  ")
    assert r.status_code == 201, r.text
    assert r.json()["affordance"] == "pending"
    assert r.json()["pending_count"] is None

    owner_view = await get_group(client, gid, owner)
    assert owner_view["pending_count"] == 1
    assert owner_view["member_count"] == 0

    r = await client.get(f"/api/v1/groups/{gid}/requests", headers=owner["headers"])
    assert r.status_code == 200
    requests = r.json()
    assert len(requests) == 1
    assert requests[0]["user_id"] == requester["id"]
    assert requests[0]["join_message"] == "I am in the same course"
    assert requests[0]["profiles"]["full_name"] == "Requester"

    r = await client.post(f"/api/v1/groups/{gid}/requests/{requester['id']}/approve", headers=owner["headers"])
    assert r.status_code == 200, r.text
    assert r.json()["member_count"] == 1
    assert r.json()["pending_count"] == 0

    view = await get_group(client, gid, requester)
    assert view["affordance"] == "enter"
    assert view["can_moderate"] is False


async def test_approving_twice_is_a_no_op(client, user_factory, supabase):
    owner = user_factory()
    requester = user_factory()
    group = await create_group(client, owner, is_private=True)
    gid = group["id"]
    await request_to_join(client, gid, requester)

    url = f"/api/v1/groups/{gid}/requests/{requester['id']}/approve"
    first = await client.post(url, headers=owner["headers"])
    second = await client.post(url, headers=owner["headers"])
    assert first.status_code == second.status_code == 200
    assert second.json()["member_count"] == 1
    assert len(supabase.rows("group_members", group_id=gid)) == 1


async def test_approving_unknown_request_is_not_found(client, user_factory):
    owner = user_factory()
    stranger = user_factory()
    group = await create_group(client, owner, is_private=True)

    r = await client.post(
        f"/api/v1/groups/{group['id']}/requests/{stranger['id']}/approve", headers=owner["headers"]
    )
    assert r.status_code == 404


async def test_reject_deletes_the_request_and_allows_a_new_one(client, user_factory, supabase):
    owner = user_factory()
    requester = user_factory()
    group = await create_group(client, owner, is_private=True)
    gid = group["id"]
    await request_to_join(client, gid, requester)

    url = f"/api/v1/groups/{gid}/requests/{requester['id']}"
    r = await client.delete(url, headers=owner["headers"])
    assert r.status_code == 200, r.text
    assert r.json()["pending_count"] == 0
    assert supabase.rows("group_members", group_id=gid) == []

    # rejecting an absent request is a no-op
    r = await client.delete(url, headers=owner["headers"])
    assert r.status_code == 200

    assert (await get_group(client, gid, requester))["affordance"] == "request"


async def test_rejecting_an_approved_member_conflicts(client, user_factory, supabase):
    owner = user_factory()
    member = user_factory()
    group = await create_group(client, owner)
    await client.post(f"/api/v1/groups/{group['id']}/join", headers=member["headers"])

    r = await client.delete(f"/api/v1/groups/{group['id']}/requests/{member['id']}", headers=owner["headers"])
    assert r.status_code == 409
    assert supabase.rows("group_members", user_id=member["id"])[0]["status"] == "approved"


async def test_rejected_row_is_reused_when_requesting_again(client, user_factory, supabase):
    owner = user_factory()
    requester = user_factory()
    group = await create_group(client, owner, is_private=True)
    gid = group["id"]
    supabase.insert_row("group_members", {"group_id": gid, "user_id": requester["id"], "status": "rejected"})

    view = await get_group(client, gid, requester)
    assert view["viewer_status"] == "rejected"
    assert view["affordance"] == "request_again"

    r = await request_to_join(client, gid, requester, "Second try")
    assert r.status_code == 201, r.text
    assert r.json()["affordance"] == "pending"

    rows = supabase.rows("group_members", group_id=gid, user_id=requester["id"])
    assert len(rows) == 1
    assert rows[0]["status"] == "pending"
    assert rows[0]["join_message"] == "Second try"


async def test_pending_request_cannot_be_sent_twice(client, user_factory, supabase):
    owner = user_factory()
    requester = user_factory()
    group = await create_group(client, owner, is_private=True)
    await request_to_join(client, group["id"], requester)

    r = await request_to_join(client, group["id"], requester)
    assert r.status_code == 409
    assert len(supabase.rows("group_members", group_id=group["id"])) == 1


async def test_join_request_needs_a_message(client, user_factory, supabase):
    owner = user_factory()
    requester = user_factory()
    group = await create_group(client, owner, is_private=True)

    r = await request_to_join(client, group["id"], requester, "   ")
    assert r.status_code == 422
    assert supabase.rows("group_members") == []


async def test_public_group_does_not_take_requests(client, user_factory):
    owner = user_factory()
    requester = user_factory()
    group = await create_group(client, owner)

    r = await request_to_join(client, group["id"], requester)
    assert r.status_code == 400


async def test_only_the_creator_moderates(client, user_factory, supabase):
    owner = user_factory()
    requester = user_factory()
    intruder = user_factory()
    group = await create_group(client, owner, is_private=True)
    gid = group["id"]
    await request_to_join(client, gid, requester)

    r = await client.get(f"/api/v1/groups/{gid}/requests", headers=intruder["headers"])
    assert r.status_code == 403
    r = await client.post(f"/api/v1/groups/{gid}/requests/{requester['id']}/approve", headers=intruder["headers"])
    assert r.status_code == 403
    r = await client.delete(f"/api/v1/groups/{gid}/requests/{requester['id']}", headers=intruder["headers"])
    assert r.status_code == 403
    r = await client.put(f"/api/v1/groups/{gid}", json={"name": "Mine now"}, headers=intruder["headers"])
    assert r.status_code == 403

    assert supabase.rows("group_members", group_id=gid)[0]["status"] == "pending"


async def test_creator_updates_settings(client, user_factory):
    owner = user_factory()
    group = await create_group(client, owner)

    r = await client.put(
        f"/api/v1/groups/{group['id']}", json={"name": "Renamed", "is_private": True}, headers=owner["headers"]
    )
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Renamed"
    assert r.json()["is_private"] is True


async def test_failed_membership_write_keeps_state(client, user_factory, supabase):
    owner = user_factory()
    member = user_factory()
    group = await create_group(client, owner)

    with supabase.failing("group_members", "upsert"):
        r = await client.post(f"/api/v1/groups/{group['id']}/join", headers=member["headers"])
    assert r.status_code == 502
    assert "try again" in r.json()["detail"].lower()

    view = await get_group(client, group["id"], member)
    assert view["affordance"] == "join"
    assert view["member_count"] == 0


async def test_failed_approve_keeps_request_pending(client, user_factory, supabase):
    owner = user_factory()
    requester = user_factory()
    group = await create_group(client, owner, is_private=True)
    gid = group["id"]
    await request_to_join(client, gid, requester)

    with supabase.failing("group_members", "update"):
        r = await client.post(f"/api/v1/groups/{gid}/requests/{requester['id']}/approve", headers=owner["headers"])
    assert r.status_code == 502

    assert supabase.rows("group_members", group_id=gid, user_id=requester["id"])[0]["status"] == "pending"
    owner_view = await get_group(client, gid, owner)
    assert owner_view["pending_count"] == 1
    assert owner_view["member_count"] == 0
    assert (await get_group(client, gid, requester))["affordance"] == "pending"


async def test_failed_reject_keeps_request_pending(client, user_factory, supabase):
    owner = user_factory()
    requester = user_factory()
    group = await create_group(client, owner, is_private=True)
    gid = group["id"]
    await request_to_join(client, gid, requester)

    with supabase.failing("group_members", "delete"):
        r = await client.delete(f"/api/v1/groups/{gid}/requests/{requester['id']}", headers=owner["headers"])
    assert r.status_code == 502

    rows = supabase.rows("group_members", group_id=gid, user_id=requester["id"])
    assert len(rows) == 1
    assert rows[0]["status"] == "pending"
    owner_view = await get_group(client, gid, owner)
    assert owner_view["pending_count"] == 1
    assert owner_view["member_count"] == 0


async def test_directory_lists_affordance_per_group(client, user_factory):
    owner = user_factory()
    viewer = user_factory()
    public = await create_group(client, owner, name="Open")
    private = await create_group(client, owner, name="Closed", is_private=True)

    r = await client.get("/api/v1/groups", headers=viewer["headers"])
    assert r.status_code == 200
    by_id = {g["id"]: g for g in r.json()}
    assert by_id[public["id"]]["affordance"] == "join"
    assert by_id[private["id"]]["affordance"] == "request"


async def test_unknown_group_is_not_found(client):
    r = await client.get("/api/v1/groups/missing")
    assert r.status_code == 404


async def test_group_wall_is_members_only(client, user_factory, supabase):
    owner = user_factory()
    member = user_factory()
    outsider = user_factory()
    group = await create_group(client, owner, is_private=True)
    gid = group["id"]
    await request_to_join(client, gid, member)
    await client.post(f"/api/v1/groups/{gid}/requests/{member['id']}/approve", headers=owner["headers"])

    r = await client.post(f"/api/v1/groups/{gid}/posts", data={"content": "Hello group"}, headers=member["headers"])
    assert r.status_code == 201, r.text
    post = r.json()
    assert post["group_id"] == gid

    r = await client.get(f"/api/v1/groups/{gid}/posts", headers=owner["headers"])
    assert [p["id"] for p in r.json()] == [post["id"]]

    r = await client.get(f"/api/v1/groups/{gid}/posts", headers=outsider["headers"])
    assert r.status_code == 403
    r = await client.get(f"/api/v1/groups/{gid}/posts")
    assert r.status_code == 401
    assert r.json()["detail"]["action"] == "sign_in"

    r = await client.post(f"/api/v1/groups/{gid}/posts", data={"content": "Let me in"}, headers=outsider["headers"])
    assert r.status_code == 403

    # group posts stay off the main feed
    r = await client.get("/api/v1/posts")
    assert post["id"] not in [p["id"] for p in r.json()]


async def test_group_post_attachments_pick_their_bucket(client, user_factory, supabase):
    owner = user_factory()
    group = await create_group(client, owner)
    gid = group["id"]

    r = await client.post(
        f"/api/v1/groups/{gid}/posts",
        data={"content": "Notes"},
        files={"file": ("notes.pdf", b"%PDF-1.4 notes", "application/pdf")},
        headers=owner["headers"],
    )
    assert r.status_code == 201, r.text
    assert r.json()["file_name"] == "notes.pdf"
    assert r.json()["image_url"] is None
    assert list(supabase.buckets["task_files"])[0].startswith(f"{gid}/")

    r = await client.post(
        f"/api/v1/groups/{gid}/posts",
        files={"file": ("board.jpg", b"\xff\xd8\xff", "image/jpeg")},
        headers=owner["headers"],
    )
    assert r.status_code == 201, r.text
    assert r.json()["image_url"]
    assert r.json()["file_url"] is None
    assert len(supabase.buckets["images"]) == 1


async def test_oversized_group_file_is_rejected_before_upload(client, user_factory, supabase):
    from conftest import TEST_MAX_FILE_BYTES

    owner = user_factory()
    group = await create_group(client, owner)

    r = await client.post(
        f"/api/v1/groups/{group['id']}/posts",
        files={"file": ("dump.zip", b"x" * (TEST_MAX_FILE_BYTES + 1), "application/zip")},
        headers=owner["headers"],
    )
    assert r.status_code == 413
    assert "dump.zip" in r.json()["detail"]
    assert "task_files" not in supabase.buckets
    assert supabase.rows("posts") == []
