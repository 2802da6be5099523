# File: collab_todo/main.py | Version: 1.1 | Title: FastAPI App (router includes + realtime hub + attachment storage)
from __future__ import annotations

import importlib
import importlib.util
import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from collab_todo.backend.realtime import RealtimeHub
from collab_todo.core.config import settings
from collab_todo.core.error_handlers import register_app_error_handler
from collab_todo.core.logging import configure_logging
from collab_todo.observability.sentry import init_sentry_if_configured
from collab_todo.services.attachments import LocalAttachmentStorage

# Initialize logging & observability
configure_logging()
# Silence very verbose multipart parser logs to avoid pytest "closed file" noise
logging.getLogger("python_multipart.multipart").setLevel(logging.WARNING)
init_sentry_if_configured()

# App
app = FastAPI(title="Collaborative Todo API")

# One change feed and one blob store per process; request backends borrow them
app.state.realtime = RealtimeHub()
app.state.attachment_storage = LocalAttachmentStorage()


def include_if_exists(module_path: str, attr_name: str = "router") -> bool:
    spec = importlib.util.find_spec(module_path)
    if not spec:
        return False
    mod = importlib.import_module(module_path)
    router = getattr(mod, attr_name, None)
    if router is not None:
        app.include_router(router)
        return True
    return False


# Required routers
include_if_exists("collab_todo.routers.auth")
include_if_exists("collab_todo.routers.lists")
include_if_exists("collab_todo.routers.sharing")
include_if_exists("collab_todo.routers.presence")
include_if_exists("collab_todo.routers.todos")

# Optional routers
include_if_exists("collab_todo.routers.auth_extras")
include_if_exists("collab_todo.routers.notifications")
include_if_exists("collab_todo.routers.preferences")
include_if_exists("collab_todo.routers.geolocation")
include_if_exists("collab_todo.routers.realtime")
include_if_exists("collab_todo.routers.health")

# Attachment downloads (directory is created on first upload)
if settings.ATTACHMENTS_BASE_URL.startswith("/"):
    app.mount(
        settings.ATTACHMENTS_BASE_URL.rstrip("/") or "/attachments",
        StaticFiles(directory=settings.ATTACHMENTS_DIR, check_dir=False),
        name="attachments",
    )

# Domain errors always map to HTTP statuses
register_app_error_handler(app)

# Optional standardized error responses
if getattr(settings, "ENABLE_STD_ERRORS", False):
    from collab_todo.core.error_handlers import register_exception_handlers

    register_exception_handlers(app)
