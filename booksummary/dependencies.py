"""Shared FastAPI dependencies: services, the session and the route guards."""

from dataclasses import dataclass

from fastapi import Depends, Request

from .ai import SummaryGenerator
from .auth import AuthService, SessionContext, SessionRegistry, require_admin, require_auth
from .catalog.store import CatalogService
from .config import Settings
from .models import User
from .repositories import AccountRepository, BlogRepository, BookRepository, CommentRepository
from .storage import EntityStore


SESSION_COOKIE = "session_id"


@dataclass
class Services:
    settings: Settings
    store: EntityStore
    books: BookRepository
    blog: BlogRepository
    accounts: AccountRepository
    comments: CommentRepository
    auth: AuthService
    sessions: SessionRegistry
    catalog: CatalogService
    summaries: SummaryGenerator


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_session_id(request: Request) -> str:
    # Assigned by the session cookie middleware in ``main``.
    return request.state.session_id


def get_session(
    session_id: str = Depends(get_session_id),
    services: Services = Depends(get_services),
) -> SessionContext:
    return services.sessions.get(session_id)


def user_required(page: str = "/profile"):
    """Guard for a user page; ``page`` is recorded as the post-login redirect."""

    def dependency(
        session: SessionContext = Depends(get_session),
        services: Services = Depends(get_services),
    ) -> User:
        require_auth(services.auth, session, page).raise_if_denied()
        return session.current_user

    return dependency


def admin_required(page: str = "/admin"):
    def dependency(
        session: SessionContext = Depends(get_session),
        services: Services = Depends(get_services),
    ) -> User:
        require_admin(services.auth, session, page).raise_if_denied()
        return session.current_user

    return dependency
