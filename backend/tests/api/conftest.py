"""API-specific test fixtures."""

import uuid
from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


class RecordingNotifier:
    """Collects notifications instead of emailing them."""

    def __init__(self):
        self.sent: list[tuple[str, str, dict]] = []

    async def notify(self, recipient_email, template_kind, data):
        self.sent.append((recipient_email, template_kind, data))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def api_app(tmp_path, client_caller, artist_caller, outsider_caller, notifier) -> FastAPI:
    """FastAPI app on a SQLite file database seeded with three users.

    Initializes the global database via init_db inside the TestClient's
    own event loop so route handlers can use get_session_factory().
    """
    from fastapi.middleware.cors import CORSMiddleware

    from artmarket.api.routes import api_router
    from artmarket.api.routes.commissions import get_event_publisher, get_notifier
    from artmarket.core.config import get_settings
    from artmarket.db import close_db, get_session_factory, init_db
    from artmarket.db.models import User
    from artmarket.main import register_exception_handlers

    db_url = f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        """Test lifespan - initialize DB in TestClient's event loop."""
        # Reset global so init_db creates a fresh engine in THIS loop
        import artmarket.db.base as db_mod

        db_mod._engine = None
        db_mod._session_factory = None
        await init_db(db_url)

        async with get_session_factory()() as session:
            for caller in (client_caller, artist_caller, outsider_caller):
                session.add(
                    User(
                        id=uuid.UUID(caller.user_id),
                        email=caller.email,
                        display_name=caller.display_name,
                        role=caller.role.value,
                    )
                )
            await session.commit()

        yield
        await close_db()

    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Artist Marketplace Commissions - Test Client",
        version="0.1.0",
        lifespan=test_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers (needed for debug_id testing)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_event_publisher] = lambda: None

    return app


@pytest.fixture
def api_client(api_app):
    with TestClient(api_app) as client:
        yield client


@pytest.fixture
def login(api_app):
    """Switch the authenticated caller for subsequent requests."""
    from artmarket.core.auth import require_auth

    def _login(caller):
        api_app.dependency_overrides[require_auth] = lambda: caller

    yield _login
    api_app.dependency_overrides.pop(require_auth, None)
