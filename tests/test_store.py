from __future__ import annotations

import threading
from datetime import date, datetime, timezone

import pytest

from opessocius.store import (
    CommunityMessageRepository,
    DailyTradingRepository,
    DocumentNotFound,
    DocumentStore,
    LearningUserRepository,
    ModuleRepository,
    UserRepository,
    from_timestamp,
    to_timestamp,
)


@pytest.fixture()
def db() -> DocumentStore:
    store = DocumentStore(":memory:")
    yield store
    store.close()


def test_add_get_update_delete(db: DocumentStore):
    doc_id = db.add("things", {"name": "first", "count": 1})

    assert db.get("things", doc_id) == {"id": doc_id, "name": "first", "count": 1}

    db.update("things", doc_id, {"count": 2})
    assert db.get("things", doc_id)["count"] == 2
    assert db.get("things", doc_id)["name"] == "first"

    db.delete("things", doc_id)
    assert db.get("things", doc_id) is None
    assert not db.exists("things", doc_id)


def test_update_missing_document_raises(db: DocumentStore):
    with pytest.raises(DocumentNotFound):
        db.update("things", "nope", {"count": 1})


def test_set_with_and_without_merge(db: DocumentStore):
    db.set("things", "fixed", {"a": 1, "b": 2})
    db.set("things", "fixed", {"b": 3}, merge=True)
    assert db.get("things", "fixed") == {"id": "fixed", "a": 1, "b": 3}

    db.set("things", "fixed", {"c": 4})
    assert db.get("things", "fixed") == {"id": "fixed", "c": 4}


def test_query_filters_orders_and_limits(db: DocumentStore):
    for name, rank, kind in [("b", 2, "x"), ("a", 1, "x"), ("c", 3, "y"), ("d", 4, "x")]:
        db.add("ranked", {"name": name, "rank": rank, "kind": kind})

    ascending = db.query("ranked", where=[("kind", "x")], order_by="rank")
    assert [row["name"] for row in ascending] == ["a", "b", "d"]

    top = db.query("ranked", order_by="rank", descending=True, limit=2)
    assert [row["name"] for row in top] == ["d", "c"]


def test_collections_are_isolated(db: DocumentStore):
    db.add("users/u1/dailyTrading", {"date": "2025-01-01"})

    assert db.query("users/u2/dailyTrading") == []
    assert len(db.query("users/u1/dailyTrading")) == 1


def test_timestamp_helpers():
    stamp = to_timestamp("2024-05-17")

    assert stamp == datetime(2024, 5, 17, tzinfo=timezone.utc)
    assert to_timestamp("") is None
    assert to_timestamp("17/05/2024") is None
    assert from_timestamp(stamp) == "2024-05-17"
    assert from_timestamp(date(2024, 5, 17)) == "2024-05-17"
    assert from_timestamp("2024-05-17T10:00:00.000000+00:00") == "2024-05-17"
    assert from_timestamp(None) == ""
    assert from_timestamp("garbage") == ""


def test_user_repository_round_trip(db: DocumentStore):
    users = UserRepository(db)
    user_id = users.create(
        {
            "username": "jdoe",
            "email": "jdoe@example.com",
            "name": "Jane Doe",
            "initial": 10000,
            "memberSince": "2023-02-01",
        }
    )

    stored = users.get_by_username("jdoe")
    assert stored["id"] == user_id
    assert stored["currentBalance"] == 10000
    assert stored["accountStatus"] == "Active"
    assert stored["type"] == "investor"
    assert users.get_by_email("jdoe@example.com")["id"] == user_id

    portal = UserRepository.to_admin_portal(stored)
    assert portal["name"] == "Jane Doe"
    assert portal["memberSince"] == "2023-02-01"
    assert portal["balance"] == 10000


def test_user_partial_update_leaves_other_fields(db: DocumentStore):
    users = UserRepository(db)
    user_id = users.create({"username": "jdoe", "email": "jdoe@example.com", "country": "PT"})

    users.update(user_id, {"status": "Suspended"})

    stored = users.get_by_id(user_id)
    assert stored["accountStatus"] == "Suspended"
    assert stored["country"] == "PT"


def test_update_balance_computes_return_percentage(db: DocumentStore):
    users = UserRepository(db)
    user_id = users.create({"username": "a", "initial": 2000})
    broke_id = users.create({"username": "b", "initial": 0})

    users.update_balance(user_id, 2500)
    users.update_balance(broke_id, 100)
    users.update_balance("missing", 100)

    assert users.get_by_id(user_id)["totalReturn"] == 25
    assert users.get_by_id(broke_id)["totalReturn"] == 0


def test_list_users_by_type(db: DocumentStore):
    users = UserRepository(db)
    users.create({"username": "inv", "type": "investor"})
    users.create({"username": "adm", "type": "admin"})

    assert [user["username"] for user in users.list_users("admin")] == ["adm"]
    assert len(users.list_users()) == 2


def test_learning_user_names(db: DocumentStore):
    learners = LearningUserRepository(db)
    user_id = learners.create({"username": "student", "firstname": "Ana", "lastname": "Silva"})

    created = learners.get_by_id(user_id)
    assert created["fullName"] == "Ana Silva"
    assert created["tier"] == "tier1"
    assert created["active"] is True

    learners.update(user_id, {"lastname": "Costa"})
    assert learners.get_by_id(user_id)["fullName"] == "Ana Costa"


def test_modules_are_ordered_and_filtered(db: DocumentStore):
    modules = ModuleRepository(db)
    modules.create({"title": "Second", "order": "2"})
    modules.create({"title": "First", "order": 1})
    modules.create({"title": "Draft", "order": 0, "published": False})

    assert [m["title"] for m in modules.list_modules(published_only=True)] == ["First", "Second"]
    assert [m["title"] for m in modules.list_modules()] == ["Draft", "First", "Second"]


def test_community_messages_newest_first(db: DocumentStore):
    messages = CommunityMessageRepository(db)
    messages.save({"title": " Market open ", "message": "Good morning"})
    messages.save({"title": "Market close", "message": "Good night", "professor": "Rui"})

    listed = messages.list_messages()
    assert [m["messageTitle"] for m in listed] == ["Market close", "Market open"]
    assert listed[0]["professor"] == "Rui"
    assert listed[1]["professor"] == "Admin"
    assert listed[1]["professorTitle"] == "Administrator"
    assert len(messages.list_messages(limit=1)) == 1


def test_daily_trading_upserts_by_date(db: DocumentStore):
    user_id = UserRepository(db).create({"username": "trader"})
    trading = DailyTradingRepository(db)

    first = trading.save(user_id, {"date": "2025-03-03", "pnl": "120.5", "tradesCount": "4"})
    second = trading.save(user_id, {"date": "2025-03-03", "pnl": -20})
    trading.save(user_id, {"date": "2025-03-10", "pnl": 5})
    trading.save(user_id, {"date": "2025-04-01", "pnl": 7})

    assert first == second
    assert trading.get_by_date(user_id, "2025-03-03")["pnl"] == -20
    assert [row["date"] for row in trading.list_month(user_id, 2025, 3)] == ["2025-03-03", "2025-03-10"]
    assert [row["date"] for row in trading.list_all(user_id)] == ["2025-04-01", "2025-03-10", "2025-03-03"]


def test_daily_trading_follows_learning_users(db: DocumentStore):
    learner_id = LearningUserRepository(db).create({"username": "student"})

    DailyTradingRepository(db).save(learner_id, {"date": "2025-05-05", "pnl": 1})

    assert len(db.query(f"learningUsers/{learner_id}/dailyTrading")) == 1


def test_concurrent_merges_keep_every_field(db: DocumentStore):
    db.set("counters", "shared", {})

    def writer(worker: int) -> None:
        for step in range(25):
            db.set("counters", "shared", {f"w{worker}-{step}": step}, merge=True)

    threads = [threading.Thread(target=writer, args=(worker,)) for worker in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    stored = db.get("counters", "shared")
    assert len(stored) == 1 + 8 * 25


def test_concurrent_updates_keep_every_field(db: DocumentStore):
    db.set("counters", "shared", {"seed": 0})

    def writer(worker: int) -> None:
        for step in range(25):
            db.update("counters", "shared", {f"w{worker}-{step}": step})

    threads = [threading.Thread(target=writer, args=(worker,)) for worker in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(db.get("counters", "shared")) == 2 + 8 * 25


def test_daily_trading_numbers_must_be_finite(db: DocumentStore):
    user_id = UserRepository(db).create({"username": "trader"})
    trading = DailyTradingRepository(db)

    trading.save(user_id, {"date": "2025-06-02", "pnl": "nan", "profit": "inf", "tradesCount": "inf"})
    trading.save(user_id, {"date": "2025-06-03", "pnl": "-1e999", "tradesCount": "-infinity"})

    first = trading.get_by_date(user_id, "2025-06-02")
    second = trading.get_by_date(user_id, "2025-06-03")
    assert (first["pnl"], first["profit"], first["tradesCount"]) == (0, 0, 0)
    assert (second["pnl"], second["tradesCount"]) == (0, 0)


def test_update_balance_ignores_non_finite_amounts(db: DocumentStore):
    users = UserRepository(db)
    user_id = users.create({"username": "a", "initial": 1000})

    users.update_balance(user_id, float("inf"))

    stored = users.get_by_id(user_id)
    assert stored["currentBalance"] == 0
    assert stored["totalReturn"] == -100
