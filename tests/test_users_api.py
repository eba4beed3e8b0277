# tests/test_users_api.py

import json

MISSING_ID = "65f0a1b2c3d4e5f601234567"


def q(obj) -> str:
    return json.dumps(obj, separators=(",", ":"))


def test_create_user_starts_with_no_pending_tasks(client):
    response = client.post("/users", json={"name": "Alice", "email": "alice@llama.io"})
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created"
    user = body["data"]
    assert user["name"] == "Alice"
    assert user["email"] == "alice@llama.io"
    assert user["pendingTasks"] == []
    assert len(user["_id"]) == 24
    assert user["dateCreated"].endswith("Z")


def test_create_user_ignores_pending_tasks_in_body(client, make_task):
    task = make_task()
    response = client.post(
        "/users", json={"name": "A", "email": "a@llama.io", "pendingTasks": [task["_id"]]}
    )
    assert response.status_code == 201
    assert response.json()["data"]["pendingTasks"] == []


def test_create_user_requires_name_and_email(client):
    for body in ({"name": "No Email"}, {"email": "noname@llama.io"}, {"name": "", "email": "x@llama.io"}):
        response = client.post("/users", json=body)
        assert response.status_code == 400
        assert response.json() == {"message": "User name and email are required", "data": {}}


def test_create_user_without_body(client):
    response = client.post("/users")
    assert response.status_code == 400
    assert response.json()["message"] == "User name and email are required"


def test_create_user_rejects_invalid_email(client):
    response = client.post("/users", json={"name": "A", "email": "not-an-email"})
    assert response.status_code == 400
    assert "email" in response.json()["message"]


def test_create_user_accepts_local_and_test_domains(client):
    for email in ("a@b", "t@site.test", "ops@intranet"):
        response = client.post("/users", json={"name": "Local", "email": email})
        assert response.status_code == 201, response.text
        assert response.json()["data"]["email"] == email


def test_duplicate_email_is_400_already_exists(client, make_user):
    make_user(email="dup@llama.io")
    response = client.post("/users", json={"name": "Other", "email": "dup@llama.io"})
    assert response.status_code == 400
    assert "already exists" in response.json()["message"]


def test_malformed_json_body(client):
    response = client.post(
        "/users", content="{bad json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid JSON body"


def test_get_user_by_id_with_select(client, make_user):
    user = make_user(name="Bob")
    response = client.get(f"/users/{user['_id']}", params={"select": q({"email": 0})})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Bob"
    assert "email" not in data
    assert data["_id"] == user["_id"]


def test_get_user_not_found(client):
    for user_id in (MISSING_ID, "not-an-id"):
        response = client.get(f"/users/{user_id}")
        assert response.status_code == 404
        assert response.json() == {"message": "User not found", "data": {}}


def test_list_users_unlimited_by_default(client, make_user):
    for _ in range(120):
        make_user()
    response = client.get("/users")
    assert response.status_code == 200
    assert len(response.json()["data"]) == 120


def test_list_users_where_sort_select_skip_limit(client, make_user):
    for name in ["Dora", "alpha", "Carl", "Bea", "Eve"]:
        make_user(name=name)
    response = client.get(
        "/users",
        params={
            "where": q({"name": {"$ne": "alpha"}}),
            "sort": q({"name": 1}),
            "select": q({"name": 1, "_id": 0}),
            "skip": "1",
            "limit": "2",
        },
    )
    assert response.status_code == 200
    assert response.json()["data"] == [{"name": "Carl"}, {"name": "Dora"}]


def test_list_users_sort_descending(client, make_user):
    for name in ["A", "C", "B"]:
        make_user(name=name)
    response = client.get("/users", params={"sort": q({"name": -1}), "select": q({"name": 1})})
    assert [user["name"] for user in response.json()["data"]] == ["C", "B", "A"]


def test_count_users(client, make_user):
    for _ in range(12):
        make_user()
    response = client.get("/users", params={"count": "true"})
    assert response.json() == {"message": "Users count retrieved successfully", "data": 12}

    paged = client.get("/users", params={"count": "true", "skip": "5", "limit": "10"})
    assert paged.json()["data"] == 7


def test_bad_query_parameters(client):
    response = client.get("/users", params={"where": "{oops"})
    assert response.status_code == 400
    assert response.json()["message"] == 'Invalid JSON for "where" parameter'

    response = client.get("/users", params={"select": "[1"})
    assert response.json()["message"] == 'Invalid JSON for "select" parameter'

    response = client.get("/users", params={"count": "perhaps"})
    assert response.status_code == 400

    response = client.get("/users", params={"where": q({"_id": "abc"})})
    assert response.status_code == 400
    assert response.json()["message"] == "The provided user id is not valid"


def test_where_single_id_missing_is_404(client, make_user):
    make_user()
    response = client.get("/users", params={"where": q({"_id": MISSING_ID})})
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_where_id_in_reports_missing(client, make_user):
    user = make_user()
    response = client.get("/users", params={"where": q({"_id": {"$in": [user["_id"], MISSING_ID]}})})
    assert response.status_code == 404
    assert response.json() == {"message": "Ids not found", "data": {"missing": [MISSING_ID]}}

    found = client.get("/users", params={"where": q({"_id": {"$in": [user["_id"]]}})})
    assert found.status_code == 200
    assert [doc["_id"] for doc in found.json()["data"]] == [user["_id"]]


def test_replace_user(client, make_user):
    user = make_user(name="Old", email="old@llama.io")
    response = client.put(f"/users/{user['_id']}", json={"name": "New", "email": "new@llama.io"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["name"], data["email"], data["pendingTasks"]) == ("New", "new@llama.io", [])
    assert data["dateCreated"] == user["dateCreated"]


def test_replace_user_errors(client, make_user):
    user = make_user()
    other = make_user(email="taken@llama.io")

    missing = client.put(f"/users/{MISSING_ID}", json={"name": "X", "email": "x@llama.io"})
    assert missing.status_code == 404

    incomplete = client.put(f"/users/{user['_id']}", json={"name": "X"})
    assert incomplete.status_code == 400
    assert incomplete.json()["message"] == "User name and email are required"

    conflict = client.put(f"/users/{user['_id']}", json={"name": "X", "email": other["email"]})
    assert conflict.status_code == 400
    assert "already exists" in conflict.json()["message"]


def test_delete_user(client, make_user):
    user = make_user()
    response = client.delete(f"/users/{user['_id']}")
    assert response.status_code == 200
    assert response.json() == {"message": "User deleted", "data": {}}
    assert client.get(f"/users/{user['_id']}").status_code == 404
    assert client.delete(f"/users/{user['_id']}").status_code == 404


def test_list_users_where_pending_tasks_holds_task(client, make_user, make_task):
    alice = make_user(name="Alice")
    bob = make_user(name="Bob")
    make_user(name="Idle")
    first = make_task(assignedUser=alice["_id"])
    second = make_task(assignedUser=bob["_id"])

    response = client.get("/users", params={"where": q({"pendingTasks": first["_id"]})})
    assert response.status_code == 200
    assert [user["name"] for user in response.json()["data"]] == ["Alice"]

    response = client.get(
        "/users", params={"where": q({"pendingTasks": {"$in": [first["_id"], second["_id"]]}})}
    )
    assert [user["name"] for user in response.json()["data"]] == ["Alice", "Bob"]

    response = client.get(
        "/users", params={"where": q({"pendingTasks": {"$nin": [first["_id"]]}}), "count": "true"}
    )
    assert response.json()["data"] == 2


def test_list_users_pending_tasks_rejects_range_operators(client):
    response = client.get("/users", params={"where": q({"pendingTasks": {"$gt": MISSING_ID}})})
    assert response.status_code == 400
    assert response.json()["message"].startswith('Invalid value for "where" parameter')
