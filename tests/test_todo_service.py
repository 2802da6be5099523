# File: tests/test_todo_service.py | Version: 1.1 | Title: Todos CRUD, toggles, sharing, bulk, attachments, recurrence
from datetime import UTC, date, datetime
from types import SimpleNamespace

import pytest

from collab_todo.core.errors import BackendError, NotFoundError, ValidationError
from collab_todo.core.permissions import ListPermission, TodoPermission
from collab_todo.services import ListService, TodoService


@pytest.fixture()
def team(make_backend, users, clock, storage):
    """Alice owns the list; Bob edits it, Carol views it."""
    alice_lists = ListService(make_backend(users.alice))
    lst = alice_lists.create_list("Team")
    for user, permission in ((users.bob, ListPermission.EDITOR), (users.carol, ListPermission.VIEWER)):
        share = alice_lists.share_list(lst["id"], user.email, permission)
        ListService(make_backend(user)).accept_invite(share["id"])
    return SimpleNamespace(
        list_id=lst["id"],
        alice=TodoService(make_backend(users.alice), clock=clock, storage=storage),
        bob=TodoService(make_backend(users.bob), clock=clock, storage=storage),
        carol=TodoService(make_backend(users.carol), clock=clock, storage=storage),
        dave=TodoService(make_backend(users.dave), clock=clock, storage=storage),
    )


# ---------------------------
# CRUD + toggles
# ---------------------------


def test_new_todo_is_open_and_private(team):
    todo = team.alice.create_todo(team.list_id, "Buy milk")
    assert todo["completed"] is False
    assert todo["is_public"] is False
    assert todo["priority"] == "none"
    assert todo["position"] == 1000


def test_toggle_public_flips_and_flips_back(team):
    todo = team.alice.create_todo(team.list_id, "Buy milk")
    assert team.alice.toggle_public(todo["id"])["is_public"] is True
    assert team.alice.toggle_public(todo["id"])["is_public"] is False


def test_toggle_twice_restores_completed(team):
    todo = team.alice.create_todo(team.list_id, "Water plants")
    team.alice.toggle_todo(todo["id"])
    assert team.alice.toggle_todo(todo["id"])["completed"] is todo["completed"]


def test_read_then_write_toggle_loses_a_flip(team):
    """Two clients that both read completed=false and write true end at true."""
    todo = team.alice.create_todo(team.list_id, "Shared chore")
    seen_by_alice = team.alice.get_todo_by_id(todo["id"])["completed"]
    seen_by_bob = team.bob.get_todo_by_id(todo["id"])["completed"]

    team.alice.update_todo(todo["id"], {"completed": not seen_by_alice})
    team.bob.update_todo(todo["id"], {"completed": not seen_by_bob})
    assert team.alice.get_todo_by_id(todo["id"])["completed"] is True


def test_atomic_toggle_from_two_stale_clients_keeps_both_flips(team):
    todo = team.alice.create_todo(team.list_id, "Shared chore")
    assert team.alice.get_todo_by_id(todo["id"])["completed"] is False
    assert team.bob.get_todo_by_id(todo["id"])["completed"] is False

    assert team.alice.toggle_todo(todo["id"])["completed"] is True
    assert team.bob.toggle_todo(todo["id"])["completed"] is False
    assert team.carol.get_todo_by_id(todo["id"])["completed"] is False


def test_toggle_invisible_todo_is_not_found(team):
    todo = team.alice.create_todo(team.list_id, "Private")
    with pytest.raises(NotFoundError):
        team.dave.toggle_todo(todo["id"])


def test_create_todo_with_details_is_normalized(team):
    todo = team.bob.create_todo(
        team.list_id,
        "Gym",
        priority="HIGH",
        tags=[" health ", "health", "", "routine"],
        recurrence_rule="Weekly:1",
        due_date=datetime(2026, 3, 2, 18, 0, tzinfo=UTC),
    )
    assert todo["priority"] == "high"
    assert todo["tags"] == ["health", "routine"]
    assert todo["recurrence_rule"] == "weekly"
    assert todo["due_date"] == datetime(2026, 3, 2, 18, 0, tzinfo=UTC)


def test_create_todo_rejects_bad_input(team):
    with pytest.raises(ValidationError):
        team.alice.create_todo(team.list_id, "X", colour="red")
    with pytest.raises(ValidationError):
        team.alice.create_todo(team.list_id, "X", priority="urgent")
    with pytest.raises(ValidationError):
        team.alice.create_todo(team.list_id, "X", recurrence_rule="fortnightly")


def test_viewer_and_stranger_cannot_add_todos(team):
    with pytest.raises(BackendError):
        team.carol.create_todo(team.list_id, "Sneaky")
    with pytest.raises(BackendError):
        team.dave.create_todo(team.list_id, "Sneakier")
    assert team.alice.get_todos(team.list_id) == []


def test_todos_are_ordered_by_position(team):
    first = team.alice.create_todo(team.list_id, "First")
    second = team.bob.create_todo(team.list_id, "Second")
    assert [t["id"] for t in team.carol.get_todos(team.list_id)] == [first["id"], second["id"]]


def test_update_and_delete(team):
    todo = team.alice.create_todo(team.list_id, "Draft")
    assert team.bob.update_todo(todo["id"], {"title": "Final", "notes": "ship it"})["notes"] == "ship it"
    with pytest.raises(ValidationError):
        team.bob.update_todo(todo["id"], {"title": "   "})
    with pytest.raises(ValidationError):
        team.bob.update_todo(todo["id"], {"user_id": "someone"})

    team.bob.delete_todo(todo["id"])
    assert team.alice.get_todo_by_id(todo["id"]) is None
    with pytest.raises(BackendError):
        team.alice.delete_todo(todo["id"])
    with pytest.raises(NotFoundError):
        team.alice.update_todo(todo["id"], {"title": "Gone"})


# ---------------------------
# Sharing
# ---------------------------


def test_share_todo_makes_it_visible_to_addressee(team, users):
    todo = team.alice.create_todo(team.list_id, "Plan trip")
    assert team.dave.get_todo_by_id(todo["id"]) is None

    share = team.alice.share_todo(todo["id"], users.dave.email)
    assert share["permission"] == "view"
    assert team.dave.get_todo_by_id(todo["id"])["title"] == "Plan trip"
    assert [s["id"] for s in team.alice.get_shares(todo["id"])] == [share["id"]]

    assert team.alice.update_share_permission(share["id"], TodoPermission.EDIT)["permission"] == "edit"
    team.alice.remove_share(share["id"])
    assert team.dave.get_todo_by_id(todo["id"]) is None


def test_public_todo_is_visible_to_everyone(team):
    todo = team.alice.create_todo(team.list_id, "Open invite")
    team.alice.toggle_public(todo["id"])
    assert team.dave.get_todo_by_id(todo["id"])["is_public"] is True


def test_stranger_cannot_change_a_public_todo(team):
    todo = team.alice.create_todo(team.list_id, "Open invite")
    team.alice.toggle_public(todo["id"])
    assert team.dave.get_todo_by_id(todo["id"])["title"] == "Open invite"

    with pytest.raises(BackendError):
        team.dave.update_todo(todo["id"], {"title": "Mine now"})
    with pytest.raises(BackendError):
        team.dave.toggle_todo(todo["id"])
    with pytest.raises(BackendError):
        team.dave.delete_todo(todo["id"])

    survivor = team.alice.get_todo_by_id(todo["id"])
    assert survivor["title"] == "Open invite"
    assert survivor["completed"] is False


def test_list_viewer_cannot_edit_todos(team):
    todo = team.alice.create_todo(team.list_id, "Read only")
    with pytest.raises(BackendError):
        team.carol.update_todo(todo["id"], {"title": "Edited"})
    with pytest.raises(BackendError):
        team.carol.toggle_todo(todo["id"])
    with pytest.raises(BackendError):
        team.carol.delete_todo(todo["id"])
    assert team.bob.update_todo(todo["id"], {"title": "Edited"})["title"] == "Edited"


def test_edit_share_grants_writes_view_share_does_not(team, users):
    todo = team.alice.create_todo(team.list_id, "Plan trip")
    share = team.alice.share_todo(todo["id"], users.dave.email)
    with pytest.raises(BackendError):
        team.dave.update_todo(todo["id"], {"title": "Dave's trip"})
    with pytest.raises(BackendError):
        team.dave.update_share_permission(share["id"], TodoPermission.EDIT)

    team.alice.update_share_permission(share["id"], TodoPermission.EDIT)
    assert team.dave.update_todo(todo["id"], {"title": "Dave's trip"})["title"] == "Dave's trip"
    assert team.dave.toggle_todo(todo["id"])["completed"] is True


# ---------------------------
# Bulk
# ---------------------------


def test_bulk_operations(team):
    ids = [team.alice.create_todo(team.list_id, f"Item {n}")["id"] for n in range(3)]

    assert all(t["completed"] for t in team.bob.bulk_complete(ids))
    assert {t["priority"] for t in team.bob.bulk_set_priority(ids[:2], "medium")} == {"medium"}
    team.bob.bulk_add_tag(ids, "errand")
    tagged = team.bob.bulk_add_tag(ids, "errand")
    assert all(t["tags"] == ["errand"] for t in tagged)

    assert team.bob.bulk_delete(ids) == 3
    assert team.alice.get_todos(team.list_id) == []


def test_bulk_stops_at_first_failure(team):
    first = team.alice.create_todo(team.list_id, "First")
    last = team.alice.create_todo(team.list_id, "Last")

    with pytest.raises(NotFoundError):
        team.alice.bulk_complete([first["id"], "missing", last["id"]])
    assert team.alice.get_todo_by_id(first["id"])["completed"] is True
    assert team.alice.get_todo_by_id(last["id"])["completed"] is False


def test_bulk_add_tag_requires_tag(team):
    with pytest.raises(ValidationError):
        team.alice.bulk_add_tag(["x"], "  ")


# ---------------------------
# Attachments
# ---------------------------


def test_upload_and_delete_attachment(team, storage, users):
    todo = team.alice.create_todo(team.list_id, "Receipts")
    record = team.bob.upload_attachment(todo["id"], "../../receipt 01.pdf", b"%PDF-1.4", "application/pdf")

    assert record["url"].startswith("/attachments/")
    assert record["key"].endswith("receipt_01.pdf")
    assert record["uploaded_by"] == users.bob.id
    stored = storage.root / record["key"]
    assert stored.read_bytes() == b"%PDF-1.4"
    assert team.alice.get_todo_by_id(todo["id"])["attachments"][0]["id"] == record["id"]

    team.alice.delete_attachment(todo["id"], record["id"])
    assert not stored.exists()
    assert team.alice.get_todo_by_id(todo["id"])["attachments"] == []
    with pytest.raises(NotFoundError):
        team.alice.delete_attachment(todo["id"], record["id"])


def test_attachment_size_limit(team, storage):
    todo = team.alice.create_todo(team.list_id, "Big file")
    with pytest.raises(ValidationError):
        team.alice.upload_attachment(todo["id"], "big.bin", b"x" * (storage.max_bytes + 1))
    assert team.alice.get_todo_by_id(todo["id"])["attachments"] == []


# ---------------------------
# Recurrence
# ---------------------------


def test_complete_recurring_instance_advances_parent(team):
    parent = team.alice.create_todo(
        team.list_id, "Standup notes", recurrence_rule="weekly", due_date=datetime(2026, 3, 2, tzinfo=UTC), tags=["work"]
    )
    instance, updated = team.alice.complete_recurring_instance(parent["id"], date(2026, 3, 2))

    assert instance["completed"] is True
    assert instance["recurrence_parent_id"] == parent["id"]
    assert instance["tags"] == ["work"]
    assert instance["recurrence_rule"] is None
    assert updated["completed"] is False
    assert updated["due_date"] == datetime(2026, 3, 9, tzinfo=UTC)


def test_late_completion_skips_to_next_future_occurrence(team):
    parent = team.alice.create_todo(
        team.list_id, "Pay rent", recurrence_rule="weekly", due_date=datetime(2026, 3, 2, tzinfo=UTC)
    )
    _, updated = team.alice.complete_recurring_instance(parent["id"], date(2026, 3, 20))
    assert updated["due_date"] == datetime(2026, 3, 23, tzinfo=UTC)


def test_complete_instance_of_non_repeating_todo(team):
    todo = team.alice.create_todo(team.list_id, "Once")
    with pytest.raises(ValidationError):
        team.alice.complete_recurring_instance(todo["id"], date(2026, 3, 2))


# ---------------------------
# Subscriptions
# ---------------------------


def test_todo_subscriptions_are_scoped_to_list(team, make_backend, users):
    other = ListService(make_backend(users.alice)).create_list("Elsewhere")
    snapshots = []
    unsubscribe = team.carol.subscribe_to_todos(team.list_id, snapshots.append)

    team.alice.create_todo(other["id"], "Not here")
    assert snapshots == []
    created = team.bob.create_todo(team.list_id, "Here")
    assert [t["id"] for t in snapshots[-1]] == [created["id"]]

    unsubscribe()
    team.bob.create_todo(team.list_id, "After")
    assert len(snapshots) == 1


def test_single_todo_subscription_sees_updates(team):
    todo = team.alice.create_todo(team.list_id, "Watch me")
    seen = []
    team.carol.subscribe_to_todo(todo["id"], team.list_id, seen.append)
    team.bob.toggle_todo(todo["id"])
    assert seen[-1]["completed"] is True
