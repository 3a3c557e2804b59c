from app.core.errors import NO_ACCESS_MESSAGE
from app.core.policies import Actor


def test_health_and_security_headers(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_requests_without_token_are_rejected(client):
    response = client.get("/api/v1/projects")
    assert response.status_code in (401, 403)


def test_project_lifecycle(login, alice):
    client = login(alice)

    created = client.post("/api/v1/projects", json={"title": "Food forest", "funding_needs": "$500"})
    assert created.status_code == 201
    project_id = created.json()["id"]

    listed = client.get("/api/v1/projects")
    assert [p["id"] for p in listed.json()] == [project_id]

    role = client.get(f"/api/v1/projects/{project_id}/my-role")
    assert role.json() == {"project_id": project_id, "role": "owner"}

    budget = client.get(f"/api/v1/projects/{project_id}/budget")
    assert budget.json()["status"] == "Under budget"

    assert client.delete(f"/api/v1/projects/{project_id}").status_code == 204
    assert client.get(f"/api/v1/projects/{project_id}").status_code == 404


def test_missing_and_hidden_rows_look_the_same(login, alice, bob):
    project_id = login(alice).post("/api/v1/projects", json={"title": "Private"}).json()["id"]

    client = login(bob)
    hidden = client.get(f"/api/v1/projects/{project_id}")
    missing = client.get("/api/v1/projects/does-not-exist")

    assert hidden.status_code == missing.status_code == 404
    assert hidden.json() == missing.json() == {"detail": NO_ACCESS_MESSAGE}


def test_forbidden_uses_generic_message(login, alice, bob):
    client = login(alice)
    project_id = client.post("/api/v1/projects", json={"title": "Shared", "team": [bob.id]}).json()["id"]

    response = login(bob).delete(f"/api/v1/projects/{project_id}")

    assert response.status_code == 403
    assert response.json() == {"detail": NO_ACCESS_MESSAGE}


def test_invitation_flow_over_http(login, alice, bob):
    project_id = login(alice).post("/api/v1/projects", json={"title": "Orchard"}).json()["id"]

    invited = login(alice).post(f"/api/v1/projects/{project_id}/members", json={"email": bob.email, "role": "admin"})
    assert invited.status_code == 201
    member = invited.json()
    assert member["invitation_status"] == "pending"
    assert member["invitation_token"]

    client = login(bob)
    assert client.get(f"/api/v1/projects/{project_id}").status_code == 404
    assert [m["id"] for m in client.get("/api/v1/invitations").json()] == [member["id"]]

    accepted = client.post(f"/api/v1/invitations/{member['id']}/respond", json={"accept": True})
    assert accepted.json()["invitation_status"] == "accepted"
    assert client.get(f"/api/v1/projects/{project_id}").status_code == 200

    again = client.post(f"/api/v1/invitations/{member['id']}/respond", json={"accept": False})
    assert again.status_code == 409

    me = client.get("/api/v1/auth/me").json()
    assert me["project_ids"] == [project_id]


def test_owner_role_cannot_be_assigned(login, alice, bob):
    client = login(alice)
    project_id = client.post("/api/v1/projects", json={"title": "Orchard"}).json()["id"]

    response = client.post(f"/api/v1/projects/{project_id}/members", json={"email": bob.email, "role": "owner"})
    assert response.status_code == 422


def test_unknown_team_member_is_a_validation_error(login, alice):
    response = login(alice).post("/api/v1/projects", json={"title": "Orchard", "team": ["ghost"]})
    assert response.status_code == 422
    assert "ghost" in response.json()["detail"]


def test_task_completion_endpoint(login, alice, bob):
    badge_id = login(alice).post("/api/v1/badges", json={"title": "Helper"}).json()["id"]
    task = login(alice).post("/api/v1/tasks", json={
        "title": "Weed beds", "assignees": [bob.id], "badge_id": badge_id, "completion_verification": True,
    }).json()

    completed = login(bob).post(f"/api/v1/tasks/{task['id']}/complete")
    assert completed.json()["outcome"] == "pending_verification"

    verified = login(alice).post(f"/api/v1/tasks/{task['id']}/verify", json={"approved": True})
    assert verified.json()["outcome"] == "awarded"

    earned = login(bob).get(f"/api/v1/badges/users/{bob.id}").json()
    assert [b["badge_title"] for b in earned] == ["Helper"]

    notifications = login(bob).get("/api/v1/notifications").json()
    assert {"task_assigned", "task_verified", "badge_earned"} <= {n["type"] for n in notifications}


def test_first_request_creates_profile(login):
    newcomer = Actor(id="eve-0000-0000-0000-000000000000", email="eve@example.com")

    response = login(newcomer).get("/api/v1/profiles/me")

    assert response.status_code == 200
    assert response.json()["email"] == "eve@example.com"
    assert response.json()["current_projects"] == []


def test_policy_matrix_is_published(login, alice):
    matrix = login(alice).get("/api/v1/auth/policies").json()
    assert matrix["manager_roles"] == ["admin", "owner"]
    assert "project_member" in {e["entity"] for e in matrix["entities"]}
