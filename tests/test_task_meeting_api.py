"""
Tests: Task and Meeting APIs.

Tasks:    creation, creator-or-role status gate, history.
Meetings: participants, confidential visibility, status gate, responses.
"""

import pytest


# ── Tasks ─────────────────────────────────────────────────────────────────────


def _create_task(client, headers, **extra):
    res = client.post("/api/v1/tasks", json={"title": "Cut the trailer", **extra}, headers=headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


class TestTaskAPI:
    def test_create_defaults_to_todo(self, client, auth_headers, staff):
        task = _create_task(client, auth_headers(staff), due_date="2026-10-01")
        assert task["status"] == "todo"
        assert task["created_by"] == staff.id
        assert task["due_date"] == "2026-10-01"

    def test_create_validates(self, client, auth_headers, staff):
        res = client.post("/api/v1/tasks", json={}, headers=auth_headers(staff))
        assert res.status_code == 400
        res = client.post("/api/v1/tasks", json={"title": "x", "priority": "urgent"}, headers=auth_headers(staff))
        assert res.status_code == 422

    @pytest.mark.parametrize("key,value", [("priority", ["high"]), ("status", {"s": "todo"}), ("description", 7)])
    def test_non_string_fields_are_400(self, client, auth_headers, staff, key, value):
        res = client.post("/api/v1/tasks", json={"title": "T", key: value}, headers=auth_headers(staff))
        assert res.status_code == 400
        assert key in res.get_json()["details"]

    def test_creator_moves_own_task_and_history_is_kept(self, client, auth_headers, staff):
        task = _create_task(client, auth_headers(staff))
        res = client.patch(
            f"/api/v1/tasks/{task['id']}/status", json={"status": "revise"}, headers=auth_headers(staff),
        )
        assert res.status_code == 200

        history = client.get(f"/api/v1/tasks/{task['id']}/history", headers=auth_headers(staff)).get_json()
        assert [(h["old_value"], h["new_value"]) for h in history] == [("todo", "revise")]

    def test_other_staff_cannot_move_task(self, client, auth_headers, staff, other_staff):
        task = _create_task(client, auth_headers(staff))
        res = client.patch(
            f"/api/v1/tasks/{task['id']}/status", json={"status": "completed"}, headers=auth_headers(other_staff),
        )
        assert res.status_code == 403

    def test_project_manager_moves_any_task(self, client, auth_headers, staff, project_manager):
        task = _create_task(client, auth_headers(staff))
        res = client.patch(
            f"/api/v1/tasks/{task['id']}/status", json={"status": "completed"}, headers=auth_headers(project_manager),
        )
        assert res.status_code == 200
        detail = client.get(f"/api/v1/tasks/{task['id']}", headers=auth_headers(staff)).get_json()
        assert detail["status"] == "completed"

    def test_list_filters(self, client, auth_headers, staff, other_staff):
        _create_task(client, auth_headers(staff), assigned_to=other_staff.id)
        _create_task(client, auth_headers(staff))
        res = client.get(f"/api/v1/tasks?assigned_to={other_staff.id}", headers=auth_headers(staff))
        assert len(res.get_json()) == 1


# ── Meetings ──────────────────────────────────────────────────────────────────


def _create_meeting(client, headers, **extra):
    body = {"title": "Pre-production", "meeting_date": "2026-10-05", "meeting_time": "10:00", **extra}
    res = client.post("/api/v1/meetings", json=body, headers=headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


class TestMeetingAPI:
    def test_create_with_participants(self, client, auth_headers, staff, other_staff):
        meeting = _create_meeting(client, auth_headers(staff), participants=[other_staff.id])
        assert meeting["status"] == "scheduled"
        assert [p["user_id"] for p in meeting["participants"]] == [other_staff.id]
        assert meeting["participants"][0]["status"] == "pending"

    def test_unknown_participant_is_422(self, client, auth_headers, staff):
        res = client.post(
            "/api/v1/meetings",
            json={"title": "Ghost", "meeting_date": "2026-10-05", "participants": [777]},
            headers=auth_headers(staff),
        )
        assert res.status_code == 422

    @pytest.mark.parametrize("key,value", [("mode", ["online"]), ("meeting_time", 10), ("location", {"room": 1}), ("notes", [])])
    def test_non_string_fields_are_400(self, client, auth_headers, staff, key, value):
        res = client.post(
            "/api/v1/meetings",
            json={"title": "Sync", "meeting_date": "2026-10-05", key: value},
            headers=auth_headers(staff),
        )
        assert res.status_code == 400
        assert key in res.get_json()["details"]

    def test_missing_date_is_400(self, client, auth_headers, staff):
        res = client.post("/api/v1/meetings", json={"title": "No date"}, headers=auth_headers(staff))
        assert res.status_code == 400

    def test_confidential_meeting_visibility(self, client, auth_headers, staff, other_staff, make_user, super_admin):
        outsider = make_user("Out Sider", "sales")
        meeting = _create_meeting(
            client, auth_headers(staff), title="Salary review", is_confidential=True,
            participants=[other_staff.id],
        )
        _create_meeting(client, auth_headers(staff), title="Open standup")

        def titles(user):
            return sorted(m["title"] for m in client.get("/api/v1/meetings", headers=auth_headers(user)).get_json())

        assert titles(staff) == ["Open standup", "Salary review"]
        assert titles(other_staff) == ["Open standup", "Salary review"]
        assert titles(super_admin) == ["Open standup", "Salary review"]
        assert titles(outsider) == ["Open standup"]

        res = client.get(f"/api/v1/meetings/{meeting['id']}", headers=auth_headers(outsider))
        assert res.status_code == 404

    def test_creator_completes_meeting(self, client, auth_headers, staff):
        meeting = _create_meeting(client, auth_headers(staff))
        res = client.patch(
            f"/api/v1/meetings/{meeting['id']}/status", json={"status": "completed"}, headers=auth_headers(staff),
        )
        assert res.status_code == 200
        assert res.get_json()["entity"]["status"] == "completed"

    @pytest.mark.parametrize("role_fixture,expected", [("hr", 200), ("other_staff", 403)])
    def test_status_gate_for_non_creators(self, request, client, auth_headers, staff, role_fixture, expected):
        actor = request.getfixturevalue(role_fixture)
        meeting = _create_meeting(client, auth_headers(staff))
        res = client.patch(
            f"/api/v1/meetings/{meeting['id']}/status", json={"status": "cancelled"}, headers=auth_headers(actor),
        )
        assert res.status_code == expected

    def test_participant_responds(self, client, auth_headers, staff, other_staff):
        meeting = _create_meeting(client, auth_headers(staff), participants=[other_staff.id])

        res = client.post(
            f"/api/v1/meetings/{meeting['id']}/respond", json={"response": "accepted"},
            headers=auth_headers(other_staff),
        )
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "accepted"
        assert body["responded_at"] is not None

    def test_non_participant_cannot_respond(self, client, auth_headers, staff, other_staff):
        meeting = _create_meeting(client, auth_headers(staff))
        res = client.post(
            f"/api/v1/meetings/{meeting['id']}/respond", json={"response": "accepted"},
            headers=auth_headers(other_staff),
        )
        assert res.status_code == 403

    def test_invalid_response_is_422(self, client, auth_headers, staff, other_staff):
        meeting = _create_meeting(client, auth_headers(staff), participants=[other_staff.id])
        res = client.post(
            f"/api/v1/meetings/{meeting['id']}/respond", json={"response": "maybe"},
            headers=auth_headers(other_staff),
        )
        assert res.status_code == 422
