from civic_reports.extensions import channel


def _submit(client, auth_header, user, category, **extra):
	body = {
		"title": "Pothole",
		"description": "Deep pothole on Main St",
		"category_id": category.id,
	}
	body.update(extra)
	return client.post("/api/reports", json=body, headers=auth_header(user.id))


def test_health_reports_subscribers(client):
	resp = client.get("/api/health")
	assert resp.status_code == 200
	assert resp.get_json()["status"] == "ok"
	assert "subscribers" in resp.get_json()


def test_citizen_submits_report(client, make_user, auth_header, make_category):
	citizen = make_user("api_submit@test.com")
	roads = make_category("Roads")

	resp = _submit(client, auth_header, citizen, roads, type="non-emergency", image_refs=["a.jpg", "b.jpg"])

	assert resp.status_code == 201
	body = resp.get_json()
	assert body["success"] is True
	data = body["data"]
	assert data["status"] == "pending"
	assert data["type"] == "non_emergency"
	assert data["assigned_officer"] is None
	assert data["category_name"] == "Roads"
	assert data["reporter_id"] == citizen.id
	assert data["image_refs"] == ["a.jpg", "b.jpg"]


def test_submit_requires_token(client, make_category):
	roads = make_category("Roads")
	resp = client.post("/api/reports", json={"title": "x", "description": "y", "category_id": roads.id})
	assert resp.status_code == 401


def test_submit_missing_fields_is_400(client, make_user, auth_header):
	citizen = make_user("api_missing@test.com")

	resp = client.post("/api/reports", json={"title": "Only a title"}, headers=auth_header(citizen.id))

	assert resp.status_code == 400
	body = resp.get_json()
	assert body["success"] is False
	assert "description" in body["errors"]
	assert "category_id" in body["errors"]


def test_submit_inconsistent_subcategory_is_400(client, make_user, auth_header, make_category, make_subcategory):
	citizen = make_user("api_inconsistent@test.com")
	roads = make_category("Roads")
	leak = make_subcategory(make_category("Water Supply"), "Leak")

	resp = _submit(client, auth_header, citizen, roads, subcategory_id=leak.id)

	assert resp.status_code == 400
	assert resp.get_json()["payload"]["code"] == "INCONSISTENT_REFERENCE"


def test_admin_cannot_submit(client, make_user, auth_header, make_category):
	admin = make_user("api_admin_submit@test.com", role="admin")
	roads = make_category("Roads")

	resp = client.post(
		"/api/reports",
		json={"title": "x", "description": "y", "category_id": roads.id},
		headers=auth_header(admin.id, role="admin"),
	)

	assert resp.status_code == 403
	assert resp.get_json()["payload"]["code"] == "ADMIN_FORBIDDEN"


def test_list_is_scoped_and_filtered(client, make_user, auth_header, make_report, make_category):
	alice = make_user("api_list_a@test.com")
	bob = make_user("api_list_b@test.com")
	fire = make_category("Fire", type="emergency")
	mine = make_report(alice, category=fire)
	make_report(alice)
	theirs = make_report(bob)

	resp = client.get("/api/reports", headers=auth_header(alice.id))
	assert resp.status_code == 200
	ids = [r["id"] for r in resp.get_json()["data"]["items"]]
	assert mine.id in ids
	assert theirs.id not in ids
	assert resp.get_json()["data"]["total"] == 2

	resp = client.get("/api/reports?type=emergency&bucket=pending", headers=auth_header(alice.id))
	assert [r["id"] for r in resp.get_json()["data"]["items"]] == [mine.id]

	resp = client.get("/api/reports?category=999999", headers=auth_header(alice.id))
	assert resp.status_code == 200
	assert resp.get_json()["data"]["items"] == []
	assert resp.get_json()["message"] == "No reports match"


def test_list_rejects_bad_filters(client, make_user, auth_header):
	citizen = make_user("api_badfilter@test.com")

	resp = client.get("/api/reports?bucket=closed", headers=auth_header(citizen.id))
	assert resp.status_code == 400
	assert "bucket" in resp.get_json()["errors"]

	resp = client.get("/api/reports?limit=0", headers=auth_header(citizen.id))
	assert resp.status_code == 400


def test_summary_for_citizen(client, make_user, auth_header, make_report):
	citizen = make_user("api_summary@test.com")
	make_report(citizen)

	resp = client.get("/api/reports/summary", headers=auth_header(citizen.id))

	assert resp.status_code == 200
	assert resp.get_json()["data"]["total"] == 1
	assert resp.get_json()["data"]["pending"] == 1


def test_citizen_cannot_read_someone_elses_report(client, make_user, auth_header, make_report):
	owner = make_user("api_owner@test.com")
	stranger = make_user("api_stranger@test.com")
	admin = make_user("api_reader_admin@test.com", role="admin")
	report = make_report(owner)

	assert client.get(f"/api/reports/{report.id}", headers=auth_header(owner.id)).status_code == 200
	assert client.get(f"/api/reports/{report.id}", headers=auth_header(stranger.id)).status_code == 404
	assert client.get(f"/api/reports/{report.id}", headers=auth_header(admin.id, role="admin")).status_code == 200


def test_admin_drives_lifecycle(client, make_user, auth_header, make_report, make_officer):
	citizen = make_user("api_flow@test.com")
	admin = make_user("api_flow_admin@test.com", role="admin")
	officer = make_officer("Officer 42")
	report = make_report(citizen)
	headers = auth_header(admin.id, role="admin")

	resp = client.post(f"/api/reports/{report.id}/status", json={"status": "in-progress"}, headers=headers)
	assert resp.status_code == 200
	assert resp.get_json()["data"]["status"] == "in_progress"

	resp = client.post(f"/api/reports/{report.id}/status", json={"status": "pending"}, headers=headers)
	assert resp.status_code == 409
	payload = resp.get_json()["payload"]
	assert payload["code"] == "ILLEGAL_TRANSITION"
	assert payload["from"] == "in_progress"

	resp = client.post(f"/api/reports/{report.id}/officer", json={"officer_id": officer.id}, headers=headers)
	assert resp.status_code == 200
	assert resp.get_json()["data"]["assigned_officer"]["name"] == "Officer 42"

	resp = client.post(
		f"/api/reports/{report.id}/resolution",
		json={"resolution_details": "Filled and sealed"},
		headers=headers,
	)
	assert resp.status_code == 200

	resp = client.post(f"/api/reports/{report.id}/status", json={"status": "resolved"}, headers=headers)
	assert resp.status_code == 200
	data = resp.get_json()["data"]
	assert data["status"] == "resolved"
	assert data["resolution_details"] == "Filled and sealed"

	resp = client.post(f"/api/reports/{report.id}/officer", json={"officer_id": None}, headers=headers)
	assert resp.status_code == 200
	assert resp.get_json()["message"] == "Officer unassigned"


def test_admin_actions_need_admin_role(client, make_user, auth_header, make_report):
	citizen = make_user("api_not_admin@test.com")
	report = make_report(citizen)

	resp = client.post(
		f"/api/reports/{report.id}/status",
		json={"status": "in_progress"},
		headers=auth_header(citizen.id),
	)
	assert resp.status_code == 403
	assert resp.get_json()["payload"]["code"] == "ADMIN_REQUIRED"


def test_roles_claim_list_is_accepted(client, app, make_user, make_report):
	from flask_jwt_extended import create_access_token

	citizen = make_user("api_roles_claim@test.com")
	admin = make_user("api_roles_claim_admin@test.com", role="admin")
	report = make_report(citizen)
	with app.app_context():
		token = create_access_token(identity=str(admin.id), additional_claims={"roles": ["ADMIN"]})

	resp = client.get(f"/api/reports/{report.id}", headers={"Authorization": f"Bearer {token}"})
	assert resp.status_code == 200


def test_unknown_report_and_officer_are_404(client, make_user, auth_header, make_report):
	citizen = make_user("api_404@test.com")
	admin = make_user("api_404_admin@test.com", role="admin")
	report = make_report(citizen)
	headers = auth_header(admin.id, role="admin")

	assert client.post("/api/reports/999999/status", json={"status": "in_progress"}, headers=headers).status_code == 404
	resp = client.post(f"/api/reports/{report.id}/officer", json={"officer_id": 999999}, headers=headers)
	assert resp.status_code == 404
	assert resp.get_json()["payload"]["code"] == "NOT_FOUND"


def test_stream_delivers_changes_then_reconnect(client, make_user, auth_header, make_report):
	citizen = make_user("api_stream@test.com")

	resp = client.get("/api/reports/stream", headers=auth_header(citizen.id), buffered=False)
	assert resp.status_code == 200
	assert resp.mimetype == "text/event-stream"

	report = make_report(citizen)
	channel.disconnect_all("test")

	body = resp.get_data(as_text=True)
	assert "event: ready" in body
	assert "event: report" in body
	assert f'"report_id": {report.id}' in body
	assert "event: reconnect" in body
	assert body.index("event: report") < body.index("event: reconnect")
	assert '"reason": "test"' in body
