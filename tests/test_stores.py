# File: tests/test_stores.py | Version: 1.1 | Title: Store state machine, local patches and toasts
import pytest

from collab_todo.core.permissions import ListPermission
from collab_todo.services import ListService, NotificationService, PreferencesService, TodoService
from collab_todo.stores import (
    ListSharingStore,
    ListsStore,
    ListStore,
    NotificationsStore,
    PreferencesStore,
    Status,
    TodosStore,
    TodoStore,
    Toaster,
    ToastLevel,
)


@pytest.fixture()
def toaster():
    return Toaster()


@pytest.fixture()
def alice(make_backend, users):
    return make_backend(users.alice)


# ---------------------------
# Lifecycle
# ---------------------------


def test_mount_loads_and_subscribes(alice, toaster, realtime):
    store = ListsStore(ListService(alice), toaster)
    assert store.status is Status.IDLE
    assert store.lists == []

    store.mount()
    assert store.status is Status.READY
    assert len(realtime.channels("lists")) == 1

    store.unmount()
    assert realtime.channels("lists") == []


def test_context_manager_mounts_once(alice, toaster, realtime):
    store = ListsStore(ListService(alice), toaster)
    with store:
        store.mount()
        assert len(realtime.channels("lists")) == 1
    assert store.mounted is False
    assert realtime.channels("lists") == []


def test_load_failure_sets_error_and_toasts(make_backend, toaster):
    store = ListsStore(ListService(make_backend(None)), toaster).mount()
    assert store.status is Status.ERROR
    assert store.error == "User not authenticated"
    assert toaster.last.level is ToastLevel.ERROR
    assert toaster.last.message == "Failed to load lists"


def test_preferences_load_failure_is_silent(make_backend, toaster):
    store = PreferencesStore(PreferencesService(make_backend(None)), toaster).mount()
    assert store.status is Status.ERROR
    assert store.error
    assert toaster.toasts == []


def test_push_after_unmount_is_ignored(alice, toaster):
    store = ListsStore(ListService(alice), toaster).mount()
    push = store._on_push
    store.unmount()
    push([{"id": "ghost"}])
    assert store.lists == []


def test_listeners_hear_every_change(alice, toaster):
    service = ListService(alice)
    store = ListsStore(service, toaster)
    heard = []
    detach = store.listen(lambda s: heard.append(len(s.lists)))

    store.mount()
    service.create_list("Pushed")
    assert heard[-1] == 1

    detach()
    service.create_list("Quiet")
    assert heard[-1] == 1
    assert len(store.lists) == 2


# ---------------------------
# Lists + sharing
# ---------------------------


def test_create_list_validates_title_without_calling_service(alice, toaster):
    store = ListsStore(ListService(alice), toaster).mount()
    assert store.create_list("   ") is None
    assert toaster.last.message == "List title is required"
    assert store.lists == []


def test_list_mutations_arrive_through_the_subscription(alice, toaster):
    store = ListsStore(ListService(alice), toaster).mount()
    row = store.create_list("Work", color="#6366f1")
    assert toaster.last.message == 'List "Work" created'
    assert [l["id"] for l in store.lists] == [row["id"]]

    assert store.update_list(row["id"], {"title": "Job"})["title"] == "Job"
    assert store.lists[0]["title"] == "Job"


def test_delete_list_needs_confirmation(alice, toaster):
    store = ListsStore(ListService(alice), toaster).mount()
    row = store.create_list("Keep me")

    assert store.delete_list(row["id"], confirm=lambda: False) is False
    assert len(store.lists) == 1
    assert store.delete_list(row["id"], confirm=lambda: True) is True
    assert store.lists == []


def test_failed_delete_toasts_and_keeps_item(alice, make_backend, users, toaster):
    owner_store = ListsStore(ListService(alice), toaster).mount()
    row = owner_store.create_list("Shared")
    share = ListService(alice).share_list(row["id"], users.bob.email, ListPermission.EDITOR)
    ListService(make_backend(users.bob)).accept_invite(share["id"])

    bob_toaster = Toaster()
    bob_store = ListsStore(ListService(make_backend(users.bob)), bob_toaster).mount()
    assert bob_store.delete_list(row["id"]) is False
    assert bob_toaster.last.description == "Only the list owner can delete this list"
    assert [l["id"] for l in bob_store.lists] == [row["id"]]


def test_viewer_rename_toasts_and_keeps_title(alice, make_backend, users, toaster):
    row = ListService(alice).create_list("Shared")
    share = ListService(alice).share_list(row["id"], users.carol.email, ListPermission.VIEWER)
    ListService(make_backend(users.carol)).accept_invite(share["id"])

    carol_toaster = Toaster()
    carol_store = ListsStore(ListService(make_backend(users.carol)), carol_toaster).mount()
    assert carol_store.update_list(row["id"], {"title": "Hijacked"}) is None
    assert carol_toaster.last.message == "Failed to update list"
    assert "does not allow this update" in carol_toaster.last.description
    assert carol_store.lists[0]["title"] == "Shared"
    assert ListService(alice).get_list_by_id(row["id"])["title"] == "Shared"


def test_single_list_store(alice, toaster):
    service = ListService(alice)
    row = service.create_list("Solo")
    store = ListStore(service, row["id"], toaster).mount()
    assert store.current_list["title"] == "Solo"
    service.update_list(row["id"], {"title": "Duo"})
    assert store.current_list["title"] == "Duo"
    assert ListStore(service, None, toaster).mount().current_list is None


def test_remove_missing_share_leaves_shares_unchanged(alice, toaster):
    service = ListService(alice)
    lst = service.create_list("Team")
    store = ListSharingStore(service, lst["id"], toaster).mount()
    store.share_list("bob@example.com", ListPermission.EDITOR)
    before = list(store.shares)

    assert store.remove_share("does-not-exist") is False
    assert store.shares == before
    assert toaster.last.level is ToastLevel.ERROR
    assert toaster.last.message == "Failed to remove share"


def test_sharing_store_validates_email(alice, toaster):
    service = ListService(alice)
    lst = service.create_list("Team")
    store = ListSharingStore(service, lst["id"], toaster).mount()
    assert store.share_list("not-an-email") is None
    assert toaster.last.message == "A valid email address is required"
    assert store.shares == []


def test_sharing_store_round_trip(alice, make_backend, users, toaster):
    service = ListService(alice)
    lst = service.create_list("Team")
    store = ListSharingStore(service, lst["id"], toaster).mount()

    share = store.share_list(users.bob.email)
    assert toaster.last.message == f"Invite sent to {users.bob.email}"
    assert store.update_permission(share["id"], "editor")["permission"] == "editor"
    assert store.shares[0]["permission"] == "editor"
    assert store.remove_share(share["id"], confirm=lambda: True) is True
    assert store.shares == []


# ---------------------------
# Todos
# ---------------------------


@pytest.fixture()
def todos_store(alice, toaster, storage):
    lst = ListService(alice).create_list("Chores")
    return TodosStore(TodoService(alice, storage=storage), lst["id"], toaster).mount()


def test_todo_store_patches_local_state(todos_store, toaster):
    todo = todos_store.create_todo("Laundry")
    assert [t["id"] for t in todos_store.todos] == [todo["id"]]

    todos_store.toggle_todo(todo["id"])
    assert todos_store.todos[0]["completed"] is True
    todos_store.toggle_public(todo["id"])
    assert toaster.last.message == "Todo is now public"

    assert todos_store.delete_todo(todo["id"], confirm=lambda: False) is False
    assert todos_store.delete_todo(todo["id"]) is True
    assert todos_store.todos == []


def test_todo_store_rejects_blank_title(todos_store, toaster):
    assert todos_store.create_todo("") is None
    assert todos_store.update_todo("whatever", {"title": " "}) is None
    assert toaster.last.message == "Todo title is required"


def test_todo_store_failure_toasts_and_returns_none(todos_store, toaster):
    assert todos_store.toggle_todo("missing") is None
    assert toaster.last.message == "Error toggling todo"
    assert toaster.last.description == "Todo not found"


def test_todo_store_bulk_and_attachments_refetch(todos_store, toaster):
    ids = [todos_store.create_todo(f"Item {n}")["id"] for n in range(2)]
    assert todos_store.bulk_complete(ids) is True
    assert toaster.last.message == "2 todos completed"
    assert all(t["completed"] for t in todos_store.todos)

    record = todos_store.upload_attachment(ids[0], "note.txt", b"hello", "text/plain")
    assert record["name"] == "note.txt"
    assert todos_store.delete_attachment(ids[0], record["id"]) is True

    assert todos_store.bulk_delete(ids, confirm=lambda: True) is True
    assert todos_store.todos == []


def test_todo_store_bulk_failure(todos_store, toaster):
    assert todos_store.bulk_set_priority(["missing"], "high") is False
    assert toaster.last.message == "Error updating priority"


def test_todo_store_share_validation(todos_store, toaster):
    todo = todos_store.create_todo("Share me")
    assert todos_store.share_todo(todo["id"], "nope") is None
    share = todos_store.share_todo(todo["id"], "friend@example.com")
    assert todos_store.get_shares(todo["id"])[0]["id"] == share["id"]
    assert todos_store.remove_share(share["id"]) is True


def test_single_todo_store(alice, toaster):
    lst = ListService(alice).create_list("One")
    service = TodoService(alice)
    todo = service.create_todo(lst["id"], "Only")
    assert TodoStore(service, todo["id"], toaster).mount().todo["title"] == "Only"


def test_single_todo_store_follows_remote_changes(alice, make_backend, users, toaster, realtime):
    lst = ListService(alice).create_list("One")
    share = ListService(alice).share_list(lst["id"], users.bob.email, ListPermission.EDITOR)
    ListService(make_backend(users.bob)).accept_invite(share["id"])
    todo = TodoService(alice).create_todo(lst["id"], "Only")

    store = TodoStore(TodoService(alice), todo["id"], toaster).mount()
    assert store.list_id == lst["id"]
    assert len(realtime.channels(f"todos:{lst['id']}")) == 1

    bob = TodoService(make_backend(users.bob))
    bob.update_todo(todo["id"], {"title": "Renamed by Bob"})
    assert store.todo["title"] == "Renamed by Bob"
    bob.delete_todo(todo["id"])
    assert store.todo is None

    store.unmount()
    assert realtime.channels(f"todos:{lst['id']}") == []


def test_missing_todo_store_has_nothing_to_follow(alice, toaster, realtime):
    store = TodoStore(TodoService(alice), "missing", toaster).mount()
    assert store.status is Status.READY
    assert store.todo is None
    assert realtime.channels() == []


def test_change_during_initial_load_is_not_lost(alice, toaster):
    other_tab = ListService(alice)

    class SlowListsStore(ListsStore):
        def _fetch(self):
            snapshot = super()._fetch()
            other_tab.create_list("Added mid-load")
            return snapshot

    store = SlowListsStore(ListService(alice), toaster).mount()
    assert store.status is Status.READY
    assert [l["title"] for l in store.lists] == ["Added mid-load"]


# ---------------------------
# Notifications + preferences
# ---------------------------


def test_notifications_store(alice, toaster):
    service = NotificationService(alice)
    store = NotificationsStore(service, toaster).mount()
    first = service.create_notification("new_todo", "Bob added a todo")
    service.create_notification("list_update", "List renamed")
    assert store.unread_count == 2

    assert store.mark_as_read(first["id"]) is True
    assert store.unread_count == 1
    assert store.mark_all_as_read() is True
    assert store.unread_count == 0
    assert store.delete_notification(first["id"]) is True
    assert len(store.notifications) == 1


def test_preferences_store(alice, toaster):
    store = PreferencesStore(PreferencesService(alice), toaster).mount()
    assert store.preferences["time_format"] == "12h"

    store.set_time_format("24h")
    store.set_theme_preference("dark")
    store.set_auto_hide_completed(True)
    assert (store.preferences["time_format"], store.preferences["theme_preference"]) == ("24h", "dark")
    assert store.preferences["auto_hide_completed"] is True

    assert store.set_time_format("25h") is None
    assert toaster.last.message == "Failed to update preferences"
    assert store.preferences["time_format"] == "24h"
