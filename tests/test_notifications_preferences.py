# File: tests/test_notifications_preferences.py | Version: 1.0 | Title: Notification feed + preferences singleton
import pytest

from collab_todo.core.errors import AuthError, BackendError, NotFoundError, ValidationError
from collab_todo.models.enums import NotificationType
from collab_todo.services import NotificationService, PreferencesService
from collab_todo.services.preferences import DEFAULT_PREFERENCES


@pytest.fixture()
def alice_feed(make_backend, users):
    return NotificationService(make_backend(users.alice))


# ---------------------------
# Notifications
# ---------------------------


def test_create_and_list_newest_first(alice_feed):
    first = alice_feed.create_notification(NotificationType.DUE_REMINDER, "Pay rent")
    second = alice_feed.create_notification("shared_list", "  Bob shared Groceries  ", body="Open it")

    assert second["title"] == "Bob shared Groceries"
    assert second["read"] is False
    ids = [n["id"] for n in alice_feed.get_notifications()]
    assert set(ids) == {first["id"], second["id"]}
    assert len(alice_feed.get_notifications(limit=1)) == 1


def test_create_validates_type_and_title(alice_feed):
    with pytest.raises(ValidationError):
        alice_feed.create_notification("carrier_pigeon", "Hi")
    with pytest.raises(ValidationError):
        alice_feed.create_notification(NotificationType.NEW_TODO, "   ")


def test_cannot_write_into_another_feed(alice_feed, users, make_backend):
    with pytest.raises(BackendError):
        alice_feed.create_notification(NotificationType.LIST_UPDATE, "Sneaky", user_id=str(users.bob.id))

    system = NotificationService(make_backend(users.alice, bypass_policies=True))
    row = system.create_notification(NotificationType.LIST_UPDATE, "Groceries changed", user_id=str(users.bob.id))

    bob_feed = NotificationService(make_backend(users.bob))
    assert [n["id"] for n in bob_feed.get_notifications()] == [row["id"]]
    assert alice_feed.get_notifications() == []


def test_unread_count_and_mark_read(alice_feed):
    a = alice_feed.create_notification(NotificationType.NEW_TODO, "One")
    alice_feed.create_notification(NotificationType.NEW_TODO, "Two")
    alice_feed.create_notification(NotificationType.NEW_TODO, "Three")
    assert alice_feed.get_unread_count() == 3

    assert alice_feed.mark_as_read(a["id"])["read"] is True
    assert alice_feed.get_unread_count() == 2

    assert alice_feed.mark_all_as_read() == 2
    assert alice_feed.get_unread_count() == 0
    assert alice_feed.mark_all_as_read() == 0


def test_other_users_cannot_touch_my_notifications(alice_feed, make_backend, users):
    row = alice_feed.create_notification(NotificationType.NEW_TODO, "Mine")
    bob_feed = NotificationService(make_backend(users.bob))

    with pytest.raises(NotFoundError):
        bob_feed.mark_as_read(row["id"])
    with pytest.raises(BackendError):
        bob_feed.delete_notification(row["id"])

    alice_feed.delete_notification(row["id"])
    assert alice_feed.get_notifications() == []


def test_feed_requires_identity(make_backend):
    with pytest.raises(AuthError):
        NotificationService(make_backend(None)).get_notifications()


def test_subscription_refetches_own_feed(alice_feed, make_backend, users):
    snapshots = []
    unsubscribe = alice_feed.subscribe_to_notifications(snapshots.append)

    alice_feed.create_notification(NotificationType.NEW_TODO, "Ping")
    assert [n["title"] for n in snapshots[-1]] == ["Ping"]

    NotificationService(make_backend(users.bob)).create_notification(NotificationType.NEW_TODO, "Bob's own")
    assert len(snapshots) == 1

    unsubscribe()
    alice_feed.create_notification(NotificationType.NEW_TODO, "After")
    assert len(snapshots) == 1


# ---------------------------
# Preferences
# ---------------------------


def test_preferences_created_once_with_defaults(make_backend, users):
    prefs = PreferencesService(make_backend(users.alice))
    first = prefs.get_preferences()
    again = PreferencesService(make_backend(users.alice)).get_preferences()

    assert first["id"] == again["id"]
    for key, value in DEFAULT_PREFERENCES.items():
        assert first[key] == value


def test_update_preferences_normalizes(make_backend, users):
    prefs = PreferencesService(make_backend(users.alice))
    row = prefs.update_preferences({"time_format": "24H", "theme_preference": "Dark", "auto_hide_completed": 1})
    assert (row["time_format"], row["theme_preference"], row["auto_hide_completed"]) == ("24h", "dark", True)

    # empty patch returns the current row
    assert prefs.update_preferences({})["id"] == row["id"]


@pytest.mark.parametrize(
    "patch",
    [{"theme_preference": "sepia"}, {"time_format": "36h"}, {"user_id": "someone-else"}],
)
def test_update_preferences_rejects_bad_input(make_backend, users, patch):
    with pytest.raises(ValidationError):
        PreferencesService(make_backend(users.alice)).update_preferences(patch)


def test_preferences_are_private(make_backend, users):
    alice = PreferencesService(make_backend(users.alice))
    bob = PreferencesService(make_backend(users.bob))
    alice.update_preferences({"theme_preference": "dark"})
    assert bob.get_preferences()["theme_preference"] == "system"


def test_preferences_subscription(make_backend, users):
    prefs = PreferencesService(make_backend(users.alice))
    prefs.get_preferences()
    seen = []
    unsubscribe = prefs.subscribe_to_preferences(seen.append)

    PreferencesService(make_backend(users.alice)).update_preferences({"time_format": "24h"})
    assert seen[-1]["time_format"] == "24h"
    unsubscribe()
