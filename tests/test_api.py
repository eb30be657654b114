"""HTTP surface: auth, error mapping and one pass through each flow."""

from fastapi.testclient import TestClient
from sqlalchemy import inspect

from peachy.core.config import Settings
from peachy.db.session import make_engine, make_session_factory
from peachy.main import create_app
from peachy.services.security import create_access_token

from .conftest import auth


KID = auth("kid")
PARENT = auth("parent", admin=True)


def test_requires_token(client):
    assert client.get("/points/me").status_code == 401
    r = client.get("/points/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_activity_awards_and_history(client):
    assert client.post("/activities/mood", headers=KID).json() == {"user_id": "kid", "balance": 5}
    assert client.post("/activities/quiz-correct", headers=KID).json()["balance"] == 7

    r = client.get("/points/me/history", headers=KID)
    assert r.status_code == 200
    assert {row["source"] for row in r.json()} == {"MOOD", "QUIZ"}

    assert client.get("/points/me/history?limit=0", headers=KID).status_code == 400


def test_bonus_is_admin_only(client):
    r = client.post("/points/bonus", json={"user_id": "kid", "amount": 10}, headers=KID)
    assert r.status_code == 403
    assert r.json()["code"] == "AdminRequired"

    r = client.post("/points/bonus", json={"user_id": "kid", "amount": 10}, headers=PARENT)
    assert r.json() == {"user_id": "kid", "balance": 10}


def test_gift_without_funds(client):
    r = client.post("/points/gift", json={"to_user_id": "sibling", "amount": 3}, headers=KID)
    assert r.status_code == 400
    assert r.json()["code"] == "InsufficientPoints"


def test_reward_flow(client):
    body = {"title": "Ice cream", "point_cost": 10, "max_redemptions_per_week": 1, "validity_days": 2}
    r = client.post("/rewards", json=body, headers=KID)
    assert r.status_code == 403
    assert r.json()["code"] == "AdminRequired"

    r = client.post("/rewards", json=body, headers=PARENT)
    assert r.status_code == 201
    reward_id = r.json()["id"]

    client.post("/points/bonus", json={"user_id": "kid", "amount": 25}, headers=PARENT)
    r = client.post(f"/rewards/{reward_id}/redeem", headers=KID)
    assert r.status_code == 200
    redemption = r.json()
    assert redemption["remaining_points"] == 15
    assert redemption["reward_snapshot"]["title"] == "Ice cream"

    r = client.post(f"/rewards/{reward_id}/redeem", headers=KID)
    assert r.status_code == 400
    assert r.json()["code"] == "WeeklyLimitExceeded"

    r = client.post(f"/rewards/redemptions/{redemption['id']}/use", headers=KID)
    assert r.json()["is_used"] is True
    r = client.post(f"/rewards/redemptions/{redemption['id']}/use", headers=KID)
    assert r.status_code == 409
    assert r.json()["code"] == "AlreadyUsed"

    assert client.get("/rewards/redemptions/me?status=valid", headers=KID).json() == []
    assert len(client.get("/rewards/redemptions/me?status=inactive", headers=KID).json()) == 1
    assert client.post("/rewards/missing/redeem", headers=KID).status_code == 404


def test_task_flow(client):
    r = client.post("/tasks", json={"title": "Tidy up", "point_value": 15, "requires_proof": True}, headers=PARENT)
    assert r.status_code == 201
    task_id = r.json()["id"]
    assert r.json()["status"] == "Available"

    assert client.post(f"/tasks/{task_id}/claim", headers=KID).json()["status"] == "Claimed"
    r = client.post(f"/tasks/{task_id}/claim", headers=auth("sibling"))
    assert r.status_code == 409
    assert r.json()["code"] == "AlreadyClaimed"

    r = client.post(f"/tasks/{task_id}/complete", headers=KID)
    assert r.status_code == 400
    assert r.json()["code"] == "ProofRequired"

    r = client.post(f"/tasks/{task_id}/complete", json={"proof_ref": "photo-1"}, headers=KID)
    assert r.json()["status"] == "PendingApproval"
    assert [t["id"] for t in client.get("/tasks/pending", headers=PARENT).json()] == [task_id]

    assert client.post(f"/tasks/{task_id}/approve", headers=KID).status_code == 403
    assert client.post(f"/tasks/{task_id}/approve", headers=PARENT).json()["status"] == "Completed"
    assert client.get("/points/me", headers=KID).json()["balance"] == 15

    assert client.post(f"/tasks/{task_id}/approve", headers=PARENT).status_code == 409
    assert client.get("/points/me", headers=KID).json()["balance"] == 15


def test_delete_task(client):
    task_id = client.post("/tasks", json={"title": "Water plants", "point_value": 5}, headers=PARENT).json()["id"]
    assert client.delete(f"/tasks/{task_id}", headers=KID).status_code == 403
    assert client.delete(f"/tasks/{task_id}", headers=PARENT).status_code == 204
    r = client.get(f"/tasks/{task_id}", headers=PARENT)
    assert r.status_code == 404
    assert r.json()["code"] == "TaskNotFound"


def test_tree_flow(client):
    assert client.post("/trees/water", json={"points": 0}, headers=KID).status_code == 422

    r = client.post("/trees/water", json={"points": 5}, headers=KID)
    assert r.status_code == 400
    assert r.json()["code"] == "InsufficientPoints"
    assert client.get("/trees/current", headers=KID).json() is None

    client.post("/points/bonus", json={"user_id": "kid", "amount": 8}, headers=PARENT)
    r = client.post("/trees/water", json={"points": 8}, headers=KID)
    body = r.json()
    assert body["points_used"] == 5
    assert body["did_grow_fully"] is True
    assert body["leveled_up"] is True
    assert body["newly_unlocked_type"]["name"] == "fern"
    assert body["remaining_points"] == 3
    assert body["tree"]["growth_stage"] == "full_grown"

    coll = client.get("/trees/collection", headers=KID).json()
    assert coll == {"user_id": "kid", "current_level": 2, "total_trees_grown": 1, "collected_trees": {"sprig": 1}}
    assert [t["name"] for t in client.get("/trees/available", headers=KID).json()] == ["sprig", "fern"]

    r = client.post("/trees/plant", json={"type": "moss"}, headers=KID)
    assert r.status_code == 409
    assert r.json()["code"] == "TreeTypeLocked"

    r = client.post("/trees/plant", json={"type": "fern"}, headers=KID)
    assert r.status_code == 201
    r = client.post("/trees/water", json={"points": 3}, headers=KID)
    assert r.json()["tree"]["growth_progress"] == 0.3
    assert r.json()["tree"]["growth_stage"] == "sprout"
    assert len(client.get("/trees/grown", headers=KID).json()) == 1


def test_tokens_checked_against_the_app_secret(session_factory):
    config = Settings(SECRET_KEY="family-only-secret-0123456789abcdef-xyz")
    client = TestClient(create_app(session_factory, config=config))

    assert client.get("/points/me", headers=KID).status_code == 401
    own = {"Authorization": f"Bearer {create_access_token('kid', config=config)}"}
    assert client.get("/points/me", headers=own).json() == {"user_id": "kid", "balance": 0}


def test_startup_creates_tables():
    engine = make_engine("sqlite://")
    app = create_app(make_session_factory(engine))
    with TestClient(app) as client:
        assert client.get("/points/me", headers=KID).json()["balance"] == 0
    assert "pointsaccount" in inspect(engine).get_table_names()
    engine.dispose()
