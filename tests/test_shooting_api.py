"""
Tests: Shooting Schedule API.

Covers the HTTP surface of shooting_bp:
  - create with crew, detail split by partition
  - PUT reconciles crew (end-to-end camper scenario over HTTP)
  - PUT without crew keys leaves crew untouched
  - approve / reject / cancel authorization and task coupling
  - reschedule back to pending with the task deadline moved
  - malformed input → 400, business validation → 422
  - delete cascades crew rows
"""

from datetime import date

from sqlalchemy import func, select

from studio.models import db as _db
from studio.models.freelancer import Freelancer
from studio.models.shooting import CrewAssignment, ShootingSchedule
from studio.models.task import Task


def _make_task(status="todo") -> Task:
    t = Task(title="Campaign video", status=status)
    _db.session.add(t)
    _db.session.commit()
    return t


def _crew_count(shooting_id: int) -> int:
    stmt = select(func.count(CrewAssignment.id)).where(CrewAssignment.shooting_id == shooting_id)
    return _db.session.execute(stmt).scalar_one()


class TestShootingCRUD:
    def test_create_with_crew_and_get_detail(self, client, auth_headers, staff, make_user):
        u1 = make_user("Cam One", "photographer")
        u2 = make_user("Cam Two", "photographer")
        res = client.post(
            "/api/v1/shootings",
            json={
                "title": "Spring lookbook",
                "scheduled_date": "2026-05-01",
                "scheduled_time": "09:30",
                "location": "Studio A",
                "campers": [u1.id, u2.id],
                "freelancers": [{"name": "Jane Doe", "cost": 150, "role": "camper"}],
            },
            headers=auth_headers(staff),
        )
        assert res.status_code == 201
        data = res.get_json()
        assert data["status"] == "pending"
        assert data["requested_by"] == staff.id
        assert sorted(data["crew"]["campers"]) == sorted([u1.id, u2.id])
        assert data["crew"]["freelancers"][0]["name"] == "Jane Doe"
        assert data["can_approve"] is False

        detail = client.get(f"/api/v1/shootings/{data['id']}", headers=auth_headers(staff))
        assert detail.status_code == 200
        assert detail.get_json()["title"] == "Spring lookbook"

    def test_create_requires_title_and_date(self, client, auth_headers, staff):
        res = client.post("/api/v1/shootings", json={"location": "Rooftop"}, headers=auth_headers(staff))
        assert res.status_code == 400
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_REQUIRED"
        assert set(body["details"]) >= {"title", "scheduled_date"}

    def test_create_rejects_bad_date(self, client, auth_headers, staff):
        res = client.post(
            "/api/v1/shootings",
            json={"title": "x", "scheduled_date": "tomorrow"},
            headers=auth_headers(staff),
        )
        assert res.status_code == 400

    def test_create_with_unknown_crew_user_is_422_and_writes_nothing(self, client, auth_headers, staff):
        res = client.post(
            "/api/v1/shootings",
            json={"title": "Ghost crew", "scheduled_date": "2026-05-01", "campers": [9999]},
            headers=auth_headers(staff),
        )
        assert res.status_code == 422
        assert _db.session.execute(select(func.count(ShootingSchedule.id))).scalar_one() == 0

    def test_list_filters_by_status(self, client, auth_headers, staff):
        for title in ("A", "B"):
            client.post(
                "/api/v1/shootings",
                json={"title": title, "scheduled_date": "2026-05-01"},
                headers=auth_headers(staff),
            )
        res = client.get("/api/v1/shootings?status=pending", headers=auth_headers(staff))
        assert res.status_code == 200
        assert len(res.get_json()) == 2

        res = client.get("/api/v1/shootings?status=approved", headers=auth_headers(staff))
        assert res.get_json() == []

        res = client.get("/api/v1/shootings?status=bogus", headers=auth_headers(staff))
        assert res.status_code == 422

    def test_get_missing_shooting_is_404(self, client, auth_headers, staff):
        res = client.get("/api/v1/shootings/12345", headers=auth_headers(staff))
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"


class TestShootingCrewEdit:
    def test_end_to_end_camper_reconciliation(self, client, auth_headers, staff, make_user):
        u1, u2, u3 = (make_user(f"Camper {i}", "photographer") for i in range(1, 4))
        created = client.post(
            "/api/v1/shootings",
            json={"title": "Reel", "scheduled_date": "2026-06-01", "campers": [u1.id, u2.id]},
            headers=auth_headers(staff),
        ).get_json()
        sid = created["id"]

        for _ in range(2):
            res = client.put(
                f"/api/v1/shootings/{sid}",
                json={"campers": [u2.id, u3.id]},
                headers=auth_headers(staff),
            )
            assert res.status_code == 200
            assert sorted(res.get_json()["crew"]["campers"]) == sorted([u2.id, u3.id])
            assert _crew_count(sid) == 2

    def test_put_fields_only_leaves_crew_untouched(self, client, auth_headers, staff, make_user):
        u1 = make_user("Only Camper", "photographer")
        sid = client.post(
            "/api/v1/shootings",
            json={"title": "Keep crew", "scheduled_date": "2026-06-01", "campers": [u1.id]},
            headers=auth_headers(staff),
        ).get_json()["id"]

        res = client.put(
            f"/api/v1/shootings/{sid}",
            json={"title": "Renamed", "location": "Beach"},
            headers=auth_headers(staff),
        )
        assert res.status_code == 200
        body = res.get_json()
        assert body["title"] == "Renamed"
        assert body["crew"]["campers"] == [u1.id]

    def test_freelancer_diff_over_http(self, client, auth_headers, staff):
        sid = client.post(
            "/api/v1/shootings",
            json={
                "title": "Freelance diff",
                "scheduled_date": "2026-06-01",
                "freelancers": [{"name": "X", "cost": 10}],
            },
            headers=auth_headers(staff),
        ).get_json()["id"]
        x_id = client.get(f"/api/v1/shootings/{sid}", headers=auth_headers(staff)).get_json()["crew"]["freelancers"][0]["id"]

        res = client.put(
            f"/api/v1/shootings/{sid}",
            json={"freelancers": [{"id": x_id, "name": "Y", "cost": 12}, {"name": "Z"}]},
            headers=auth_headers(staff),
        )
        assert res.status_code == 200
        freelancers = res.get_json()["crew"]["freelancers"]
        assert [(f["id"], f["name"]) for f in freelancers if f["id"] == x_id] == [(x_id, "Y")]
        assert sorted(f["name"] for f in freelancers) == ["Y", "Z"]

        res = client.put(
            f"/api/v1/shootings/{sid}",
            json={"freelancers": [], "removed_freelancer_ids": [x_id]},
            headers=auth_headers(staff),
        )
        assert [f["name"] for f in res.get_json()["crew"]["freelancers"]] == ["Z"]
        names = sorted(_db.session.execute(select(Freelancer.name)).scalars().all())
        assert names == ["X", "Y", "Z"]

    def test_malformed_crew_payload_is_400(self, client, auth_headers, staff):
        sid = client.post(
            "/api/v1/shootings",
            json={"title": "Bad crew", "scheduled_date": "2026-06-01"},
            headers=auth_headers(staff),
        ).get_json()["id"]
        res = client.put(
            f"/api/v1/shootings/{sid}",
            json={"campers": "everyone"},
            headers=auth_headers(staff),
        )
        assert res.status_code == 400
        assert "crew" in res.get_json()["details"]

    def test_empty_freelancer_name_is_422_and_fields_not_saved(self, client, auth_headers, staff):
        sid = client.post(
            "/api/v1/shootings",
            json={"title": "Original", "scheduled_date": "2026-06-01"},
            headers=auth_headers(staff),
        ).get_json()["id"]
        res = client.put(
            f"/api/v1/shootings/{sid}",
            json={"title": "Changed", "freelancers": [{"name": "  "}]},
            headers=auth_headers(staff),
        )
        assert res.status_code == 422
        _db.session.expire_all()
        assert _db.session.get(ShootingSchedule, sid).title == "Original"

    def test_only_requester_or_hr_may_edit(self, client, auth_headers, staff, other_staff, hr):
        sid = client.post(
            "/api/v1/shootings",
            json={"title": "Mine", "scheduled_date": "2026-06-01"},
            headers=auth_headers(staff),
        ).get_json()["id"]

        res = client.put(f"/api/v1/shootings/{sid}", json={"title": "Theirs"}, headers=auth_headers(other_staff))
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

        res = client.put(f"/api/v1/shootings/{sid}", json={"title": "HR edit"}, headers=auth_headers(hr))
        assert res.status_code == 200


class TestShootingApproval:
    def _create(self, client, headers, **extra):
        body = {"title": "Needs approval", "scheduled_date": "2026-07-01", **extra}
        return client.post("/api/v1/shootings", json=body, headers=headers).get_json()["id"]

    def test_approve_by_hr_moves_linked_task(self, client, auth_headers, staff, hr):
        task = _make_task()
        sid = self._create(client, auth_headers(staff), task_id=task.id)

        res = client.post(f"/api/v1/shootings/{sid}/approve", headers=auth_headers(hr))
        assert res.status_code == 200
        body = res.get_json()
        assert body["entity"]["status"] == "approved"
        assert body["entity"]["approved_by"] == hr.id
        assert _db.session.get(Task, task.id).status == "in_progress"

        history = client.get(f"/api/v1/shootings/{sid}/history", headers=auth_headers(staff)).get_json()
        assert [(h["old_value"], h["new_value"]) for h in history] == [("pending", "approved")]

    def test_reject_moves_linked_task_on_hold(self, client, auth_headers, staff, super_admin):
        task = _make_task(status="in_progress")
        sid = self._create(client, auth_headers(staff), task_id=task.id)

        res = client.post(f"/api/v1/shootings/{sid}/reject", headers=auth_headers(super_admin))
        assert res.status_code == 200
        assert _db.session.get(Task, task.id).status == "on_hold"

    def test_requester_cannot_approve_own_request(self, client, auth_headers, staff):
        sid = self._create(client, auth_headers(staff))
        res = client.post(f"/api/v1/shootings/{sid}/approve", headers=auth_headers(staff))
        assert res.status_code == 403
        _db.session.expire_all()
        assert _db.session.get(ShootingSchedule, sid).status == "pending"

    def test_cancel_by_hr_records_reason_and_holds_task(self, client, auth_headers, staff, hr):
        task = _make_task(status="in_progress")
        sid = self._create(client, auth_headers(staff), task_id=task.id)
        client.post(f"/api/v1/shootings/{sid}/approve", headers=auth_headers(hr))

        res = client.post(
            f"/api/v1/shootings/{sid}/cancel", json={"reason": "Talent unavailable"}, headers=auth_headers(hr),
        )
        assert res.status_code == 200
        entity = res.get_json()["entity"]
        assert entity["status"] == "cancelled"
        assert entity["cancel_reason"] == "Talent unavailable"
        assert entity["cancelled_at"] is not None
        assert _db.session.get(Task, task.id).status == "on_hold"

    def test_cancel_requires_reason(self, client, auth_headers, staff, hr):
        sid = self._create(client, auth_headers(staff))
        res = client.post(f"/api/v1/shootings/{sid}/cancel", json={}, headers=auth_headers(hr))
        assert res.status_code == 400
        assert "reason" in res.get_json()["details"]

        res = client.post(f"/api/v1/shootings/{sid}/cancel", json={"reason": ["x"]}, headers=auth_headers(hr))
        assert res.status_code == 400
        _db.session.expire_all()
        assert _db.session.get(ShootingSchedule, sid).status == "pending"

    def test_requester_cannot_cancel(self, client, auth_headers, staff):
        sid = self._create(client, auth_headers(staff))
        res = client.post(f"/api/v1/shootings/{sid}/cancel", json={"reason": "Changed my mind"}, headers=auth_headers(staff))
        assert res.status_code == 403


class TestShootingReschedule:
    def _approved(self, client, staff_headers, hr_headers, **extra):
        body = {"title": "Moving shoot", "scheduled_date": "2026-07-01", "scheduled_time": "09:00", **extra}
        sid = client.post("/api/v1/shootings", json=body, headers=staff_headers).get_json()["id"]
        client.post(f"/api/v1/shootings/{sid}/approve", headers=hr_headers)
        return sid

    def test_reschedule_resets_to_pending_and_moves_task_deadline(self, client, auth_headers, staff, hr):
        task = _make_task()
        sid = self._approved(client, auth_headers(staff), auth_headers(hr), task_id=task.id)

        res = client.post(
            f"/api/v1/shootings/{sid}/reschedule",
            json={"scheduled_date": "2026-07-15", "scheduled_time": "13:30", "reason": "Rain forecast"},
            headers=auth_headers(hr),
        )
        assert res.status_code == 200
        entity = res.get_json()["entity"]
        assert entity["status"] == "pending"
        assert entity["scheduled_date"] == "2026-07-15"
        assert entity["scheduled_time"] == "13:30"
        assert entity["rescheduled_from"] == "2026-07-01"
        assert entity["reschedule_reason"] == "Rain forecast"
        assert _db.session.get(Task, task.id).due_date == date(2026, 7, 15)

        history = client.get(f"/api/v1/shootings/{sid}/history", headers=auth_headers(staff)).get_json()
        assert [(h["old_value"], h["new_value"]) for h in history] == [
            ("pending", "approved"),
            ("approved", "pending"),
        ]

    def test_reschedule_requires_all_fields(self, client, auth_headers, staff, hr):
        sid = self._approved(client, auth_headers(staff), auth_headers(hr))
        res = client.post(
            f"/api/v1/shootings/{sid}/reschedule", json={"scheduled_date": "2026-07-15"}, headers=auth_headers(hr),
        )
        assert res.status_code == 400
        assert set(res.get_json()["details"]) >= {"scheduled_time", "reason"}

    def test_reschedule_bad_time_is_422_and_changes_nothing(self, client, auth_headers, staff, hr):
        sid = self._approved(client, auth_headers(staff), auth_headers(hr))
        res = client.post(
            f"/api/v1/shootings/{sid}/reschedule",
            json={"scheduled_date": "2026-07-15", "scheduled_time": "25:00", "reason": "Late"},
            headers=auth_headers(hr),
        )
        assert res.status_code == 422
        _db.session.expire_all()
        shooting = _db.session.get(ShootingSchedule, sid)
        assert (shooting.status, shooting.scheduled_date) == ("approved", date(2026, 7, 1))

    def test_staff_cannot_reschedule(self, client, auth_headers, staff, hr):
        sid = self._approved(client, auth_headers(staff), auth_headers(hr))
        res = client.post(
            f"/api/v1/shootings/{sid}/reschedule",
            json={"scheduled_date": "2026-07-15", "scheduled_time": "10:00", "reason": "Prefer later"},
            headers=auth_headers(staff),
        )
        assert res.status_code == 403


class TestShootingDelete:
    def test_delete_cascades_crew(self, client, auth_headers, staff, make_user):
        u1 = make_user("Gone Camper", "photographer")
        sid = client.post(
            "/api/v1/shootings",
            json={
                "title": "Delete me",
                "scheduled_date": "2026-08-01",
                "campers": [u1.id],
                "freelancers": [{"name": "Temp"}],
            },
            headers=auth_headers(staff),
        ).get_json()["id"]
        assert _crew_count(sid) == 2

        res = client.delete(f"/api/v1/shootings/{sid}", headers=auth_headers(staff))
        assert res.status_code == 200
        assert _db.session.get(ShootingSchedule, sid) is None
        assert _crew_count(sid) == 0

    def test_delete_by_stranger_forbidden(self, client, auth_headers, staff, other_staff):
        s = ShootingSchedule(title="Protected", scheduled_date=date(2026, 8, 1), requested_by=staff.id)
        _db.session.add(s)
        _db.session.commit()
        res = client.delete(f"/api/v1/shootings/{s.id}", headers=auth_headers(other_staff))
        assert res.status_code == 403
