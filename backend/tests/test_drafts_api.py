from tests.conftest import auth_headers


def test_draft_save_restore_dismiss(client, seed_admins):
    headers = auth_headers(client)
    save = client.put(
        "/api/admin/drafts/team-member/5",
        json={"route": "/admin/dashboard/team", "data": {"name": "Ana", "displayOrder": 2}},
        headers=headers,
    )
    assert save.status_code == 200
    assert save.json() == {"key": "draft:team-member:5:_admin_dashboard_team", "pending": False}

    restored = client.get(
        "/api/admin/drafts/team-member/5", params={"route": "/admin/dashboard/team"}, headers=headers
    )
    assert restored.status_code == 200
    body = restored.json()
    assert body["has_draft"] is True
    assert body["data"] == {"name": "Ana", "displayOrder": 2}
    assert body["meta"]["version"] == 1

    dismissed = client.delete(
        "/api/admin/drafts/team-member/5", params={"route": "/admin/dashboard/team"}, headers=headers
    )
    assert dismissed.status_code == 200

    empty = client.get(
        "/api/admin/drafts/team-member/5", params={"route": "/admin/dashboard/team"}, headers=headers
    )
    assert empty.json() == {"has_draft": False, "data": None, "meta": None}


def test_drafts_require_auth(client):
    resp = client.get("/api/admin/drafts/hero/1", params={"route": "/hero"})
    assert resp.status_code == 401
