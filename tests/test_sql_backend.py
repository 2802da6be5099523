# File: tests/test_sql_backend.py | Version: 1.1 | Title: Adapter contract, visibility policies and publishing
from collab_todo.backend import ANY_EVENT, Identity, OrderBy, Tables
from collab_todo.core.clock import utcnow


def _list_fields(user, title="Work", **extra):
    return {"user_id": user.id, "title": title, "position": 1, **extra}


def test_insert_returns_row_and_publishes(make_backend, users, realtime):
    backend = make_backend(users.alice)
    seen = []
    realtime.channel("lists").on(ANY_EVENT, seen.append).subscribe()

    result = backend.db.insert(Tables.LISTS, _list_fields(users.alice))
    assert result.ok
    assert result.data["title"] == "Work"
    assert result.data["created_at"].tzinfo is not None
    assert [(e.event_type, e.new["id"]) for e in seen] == [("INSERT", result.data["id"])]


def test_insert_for_someone_else_violates_policy(make_backend, users):
    result = make_backend(users.bob).db.insert(Tables.LISTS, _list_fields(users.alice))
    assert result.data is None
    assert "violates row-level policy" in result.error
    # Rolled back: the owner does not see it either
    assert make_backend(users.alice).db.query(Tables.LISTS).data == []


def test_bypass_backend_writes_for_anyone(make_backend, users):
    admin = make_backend(bypass_policies=True)
    assert admin.db.insert(Tables.LISTS, _list_fields(users.alice)).ok
    assert len(make_backend(users.alice).db.query(Tables.LISTS).data) == 1


def test_unknown_column_is_an_error_not_an_exception(make_backend, users):
    db = make_backend(users.alice).db
    assert "does not exist" in db.insert(Tables.LISTS, {**_list_fields(users.alice), "colour": "red"}).error
    assert "does not exist" in db.query(Tables.LISTS, where={"colour": "red"}).error
    assert "does not exist" in db.query(Tables.LISTS, order_by=(OrderBy("colour"),)).error


def test_query_filters_orders_and_matches_null(make_backend, users):
    db = make_backend(users.alice).db
    db.insert(Tables.LISTS, _list_fields(users.alice, "B", position=2, location_name="Office"))
    db.insert(Tables.LISTS, _list_fields(users.alice, "A", position=1))

    ordered = db.query(Tables.LISTS, order_by=(OrderBy("position"),)).data
    assert [r["title"] for r in ordered] == ["A", "B"]
    unlocated = db.query(Tables.LISTS, where={"location_name": None}).data
    assert [r["title"] for r in unlocated] == ["A"]


def test_anonymous_backend_sees_nothing(make_backend, users):
    make_backend(users.alice).db.insert(Tables.LISTS, _list_fields(users.alice))
    assert make_backend(None).db.query(Tables.LISTS).data == []


def test_update_missing_row_returns_no_data(make_backend, users):
    result = make_backend(users.alice).db.update(Tables.LISTS, "missing", {"title": "x"})
    assert result.ok and result.data is None


def test_update_cannot_change_id(make_backend, users):
    db = make_backend(users.alice).db
    row = db.insert(Tables.LISTS, _list_fields(users.alice)).data
    assert db.update(Tables.LISTS, row["id"], {"id": "other"}).error == "column 'id' cannot be updated"


def test_update_publishes_old_and_new(make_backend, users, realtime):
    db = make_backend(users.alice).db
    row = db.insert(Tables.LISTS, _list_fields(users.alice)).data
    seen = []
    realtime.channel("lists").on("UPDATE", seen.append).subscribe()

    updated = db.update(Tables.LISTS, row["id"], {"title": "Renamed"}).data
    assert updated["title"] == "Renamed"
    assert seen[0].old["title"] == "Work"
    assert seen[0].new["title"] == "Renamed"


def test_remove_missing_row_is_an_error(make_backend, users):
    assert "No lists row" in make_backend(users.alice).db.remove(Tables.LISTS, "missing").error


def test_remove_publishes_cascaded_children(make_backend, users, realtime):
    db = make_backend(users.alice).db
    lst = db.insert(Tables.LISTS, _list_fields(users.alice)).data
    todo = db.insert(
        Tables.TODOS, {"user_id": users.alice.id, "list_id": lst["id"], "title": "Child", "position": 1}
    ).data
    deleted = []
    realtime.channel(f"todos:{lst['id']}").on("DELETE", deleted.append).subscribe()

    assert db.remove(Tables.LISTS, lst["id"]).ok
    assert [e.old["id"] for e in deleted] == [todo["id"]]
    assert db.query_by_id(Tables.TODOS, todo["id"]).data is None


def test_unknown_procedure(make_backend, users):
    assert make_backend(users.alice).db.rpc("drop_everything", {}).error == "Unknown procedure drop_everything"


def test_procedure_rejects_acting_for_others(make_backend, users):
    result = make_backend(users.bob).db.rpc("mark_all_notifications_read", {"p_user_id": users.alice.id})
    assert result.error == "Cannot act on behalf of another user"


def test_as_identity_shares_session_and_hub(make_backend, users):
    alice = make_backend(users.alice)
    bob = alice.as_identity(Identity(id=users.bob.id, email=users.bob.email))
    assert bob.session is alice.session
    assert bob.realtime is alice.realtime
    assert bob.auth.get_user().id == users.bob.id


def test_visible_rows_are_not_writable_without_write_policy(make_backend, users):
    alice = make_backend(users.alice)
    bob = make_backend(users.bob)
    lst = alice.db.insert(Tables.LISTS, _list_fields(users.alice)).data
    share_fields = {
        "list_id": lst["id"],
        "shared_with_email": users.bob.email,
        "permission": "editor",
        "invited_by": users.alice.id,
    }
    share = alice.db.insert(Tables.LIST_SHARES, share_fields).data
    assert bob.db.update(Tables.LIST_SHARES, share["id"], {"accepted_at": utcnow()}).ok
    alice_presence = alice.db.rpc("upsert_presence", {"p_list_id": lst["id"], "p_user_id": users.alice.id}).data

    assert bob.db.query_by_id(Tables.LISTS, lst["id"]).data is not None
    assert bob.db.update(Tables.LISTS, lst["id"], {"title": "Bob's"}).error == (
        "row-level policy for table lists does not allow this update"
    )
    assert "does not allow this delete" in bob.db.remove(Tables.LISTS, lst["id"]).error
    assert "does not allow this update" in bob.db.update(Tables.LIST_SHARES, share["id"], {"permission": "owner"}).error
    assert "does not allow this update" in bob.db.update(
        Tables.LIST_PRESENCE, alice_presence["id"], {"status": "editing"}
    ).error
    assert "does not allow this delete" in bob.db.remove(Tables.LIST_PRESENCE, alice_presence["id"]).error

    assert alice.db.query_by_id(Tables.LISTS, lst["id"]).data["title"] == "Work"
    assert alice.db.query_by_id(Tables.LIST_SHARES, share["id"]).data["permission"] == "editor"
