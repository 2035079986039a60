import re
from datetime import datetime

from fastapi.testclient import TestClient
from sqlalchemy import delete

from todo_service.main import create_app
from todo_service.models import Category, Todo
from todo_service.schemas import DATE_FORMAT

DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4} \d{2}:\d{2}:\d{2}$")


def _create(client, headers, **data):
    r = client.post("/api/todos", json=data, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def test_signup_login_create_scenario(client, db):
    assert client.post("/api/auth/signup", json={"email": "a@x.com", "password": "password1"}).status_code == 200
    login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "password1"})
    assert login.status_code == 200
    client.cookies.clear()
    token = login.json()["token"]

    r = client.post("/api/todos", json={"title": "Buy milk"}, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    todo = r.json()
    seeded = {c.id for c in db.query(Category).all()}
    assert todo["categoryId"] in seeded
    assert todo["userId"] == login.json()["userId"]
    assert todo["completed"] is False


def test_default_category_is_lowest_id(client, db, register):
    user = register("a@x.com")
    todo = _create(client, user["headers"], title="Buy milk")
    lowest = db.query(Category).order_by(Category.id).first()
    assert todo["categoryId"] == lowest.id


def test_create_ignores_client_owner(client, register):
    alice = register("alice@x.com")
    bob = register("bob@x.com")
    todo = _create(client, alice["headers"], title="mine", userId=bob["userId"])
    assert todo["userId"] == alice["userId"]


def test_create_then_fetch_round_trip(client, register):
    user = register("a@x.com")
    created = _create(client, user["headers"], title="Write report", completed=True, categoryId=3)

    r = client.get(f"/api/todos/{created['id']}", headers=user["headers"])
    assert r.status_code == 200
    fetched = r.json()
    for key in ("title", "completed", "categoryId"):
        assert fetched[key] == created[key]
    assert fetched["categoryId"] == 3
    assert DATE_RE.match(fetched["createdAt"])
    assert DATE_RE.match(fetched["updatedAt"])
    assert datetime.strptime(fetched["createdAt"], DATE_FORMAT) <= datetime.strptime(fetched["updatedAt"], DATE_FORMAT)


def test_create_validation(client, register):
    user = register("a@x.com")
    for payload in ({"title": ""}, {"title": "x" * 201}, {}):
        r = client.post("/api/todos", json=payload, headers=user["headers"])
        assert r.status_code == 400
        assert r.json()["detail"] == "Validation error"


def test_create_with_unknown_category(client, register):
    user = register("a@x.com")
    r = client.post("/api/todos", json={"title": "x", "categoryId": 999}, headers=user["headers"])
    assert r.status_code == 400
    assert r.json()["code"] == "CATEGORY_NOT_FOUND"


def test_create_without_any_category(settings):
    # no seeded categories in this app
    with TestClient(create_app(settings)) as c:
        c.post("/api/auth/signup", json={"email": "a@x.com", "password": "password1"})
        token = c.post("/api/auth/login", json={"email": "a@x.com", "password": "password1"}).json()["token"]
        r = c.post("/api/todos", json={"title": "x"}, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 400
    assert r.json()["code"] == "NO_CATEGORY"


def test_list_only_own_todos(client, register):
    alice = register("alice@x.com")
    bob = register("bob@x.com")
    _create(client, alice["headers"], title="a1", categoryId=1)
    _create(client, alice["headers"], title="a2", categoryId=2)
    _create(client, bob["headers"], title="b1", categoryId=1)

    r = client.get("/api/todos", headers=alice["headers"])
    assert r.status_code == 200
    assert sorted(t["title"] for t in r.json()) == ["a1", "a2"]

    r = client.get("/api/todos", params={"categoryId": 2}, headers=alice["headers"])
    assert [t["title"] for t in r.json()] == ["a2"]


def test_get_access_matrix(client, register):
    owner = register("owner@x.com")
    other = register("other@x.com")
    todo = _create(client, owner["headers"], title="secret")

    assert client.get(f"/api/todos/{todo['id']}", headers=owner["headers"]).status_code == 200
    assert client.get(f"/api/todos/{todo['id']}", headers=other["headers"]).status_code == 403
    assert client.get(f"/api/todos/{todo['id']}").status_code == 401
    assert client.get("/api/todos/does-not-exist", headers=owner["headers"]).status_code == 404
    assert client.get("/api/todos/does-not-exist", headers=other["headers"]).status_code == 404


def test_update_partial(client, register):
    user = register("a@x.com")
    todo = _create(client, user["headers"], title="draft", categoryId=1)

    r = client.put(f"/api/todos/{todo['id']}", json={"completed": True}, headers=user["headers"])
    assert r.status_code == 200
    updated = r.json()
    assert updated["completed"] is True
    assert updated["title"] == "draft"
    assert updated["categoryId"] == 1


def test_update_empty_patch_keeps_fields(client, register):
    user = register("a@x.com")
    todo = _create(client, user["headers"], title="same", categoryId=2)

    r = client.put(f"/api/todos/{todo['id']}", json={}, headers=user["headers"])
    assert r.status_code == 200
    updated = r.json()
    for key in ("id", "title", "completed", "categoryId", "userId", "createdAt"):
        assert updated[key] == todo[key]
    assert datetime.strptime(updated["updatedAt"], DATE_FORMAT) >= datetime.strptime(todo["updatedAt"], DATE_FORMAT)


def test_update_cannot_change_owner(client, register):
    alice = register("alice@x.com")
    bob = register("bob@x.com")
    todo = _create(client, alice["headers"], title="mine")

    r = client.put(f"/api/todos/{todo['id']}", json={"userId": bob["userId"], "title": "still mine"},
                   headers=alice["headers"])
    assert r.status_code == 200
    assert r.json()["userId"] == alice["userId"]
    assert r.json()["title"] == "still mine"


def test_update_access_and_category(client, register):
    owner = register("owner@x.com")
    other = register("other@x.com")
    todo = _create(client, owner["headers"], title="x")

    assert client.put(f"/api/todos/{todo['id']}", json={"title": "y"}, headers=other["headers"]).status_code == 403
    assert client.put("/api/todos/missing", json={"title": "y"}, headers=owner["headers"]).status_code == 404
    r = client.put(f"/api/todos/{todo['id']}", json={"categoryId": 999}, headers=owner["headers"])
    assert r.status_code == 400
    assert r.json()["code"] == "CATEGORY_NOT_FOUND"


def test_delete_twice(client, register):
    user = register("a@x.com")
    todo = _create(client, user["headers"], title="gone soon")

    r = client.delete(f"/api/todos/{todo['id']}", headers=user["headers"])
    assert r.status_code == 200
    assert r.json() == {"message": "Todo deleted successfully", "id": todo["id"]}

    r = client.delete(f"/api/todos/{todo['id']}", headers=user["headers"])
    assert r.status_code == 404


def test_delete_forbidden_for_other_user(client, register):
    owner = register("owner@x.com")
    other = register("other@x.com")
    todo = _create(client, owner["headers"], title="keep")

    assert client.delete(f"/api/todos/{todo['id']}", headers=other["headers"]).status_code == 403
    assert client.get(f"/api/todos/{todo['id']}", headers=owner["headers"]).status_code == 200


def test_deleting_category_cascades_to_todos(client, db, register):
    user = register("a@x.com")
    todo = _create(client, user["headers"], title="in work", categoryId=3)

    db.execute(delete(Category).where(Category.id == 3))
    db.commit()

    assert db.query(Todo).filter(Todo.id == todo["id"]).count() == 0
    assert client.get(f"/api/todos/{todo['id']}", headers=user["headers"]).status_code == 404
