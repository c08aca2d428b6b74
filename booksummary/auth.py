"""
Session flags, login/registration and route guards.

A ``SessionContext`` is the injectable replacement for the flags a
browser keeps in its storage: ``userLoggedIn``, ``adminLoggedIn`` and a
``currentUser`` snapshot live in the *persistent* backend, while the
API key and the post-login redirect live in the *scratch* backend that
only lasts as long as the session. Nothing here reaches for global
state, so tests build a context over two ``MemoryBackend`` instances.

Invariant kept by every write path (login, registration, logout):
``adminLoggedIn`` is only ever true together with a ``currentUser``
whose role is ``admin``.
"""

from __future__ import annotations

import json
import logging
import secrets
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cachetools import TTLCache
from werkzeug.security import check_password_hash

from .errors import AccessDenied, EmailAlreadyRegistered, InvalidCredentials, NotAuthenticated
from .models import Account, Notification, ProfileUpdate, User
from .repositories import AccountRepository
from .storage import (
    ADMIN_LOGGED_IN_KEY,
    CURRENT_USER_KEY,
    REDIRECT_AFTER_LOGIN_KEY,
    USER_LOGGED_IN_KEY,
    EntityStore,
    KeyValueBackend,
    MemoryBackend,
    NamespacedBackend,
)


logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
HOME_PATH = "/"


class SessionContext:
    def __init__(self, persistent: KeyValueBackend, scratch: Optional[KeyValueBackend] = None) -> None:
        self.persistent = persistent
        self.scratch = scratch if scratch is not None else MemoryBackend()

    @property
    def user_logged_in(self) -> bool:
        return self.persistent.get(USER_LOGGED_IN_KEY) == "true"

    @user_logged_in.setter
    def user_logged_in(self, value: bool) -> None:
        self._set_flag(USER_LOGGED_IN_KEY, value)

    @property
    def admin_logged_in(self) -> bool:
        return self.persistent.get(ADMIN_LOGGED_IN_KEY) == "true"

    @admin_logged_in.setter
    def admin_logged_in(self, value: bool) -> None:
        self._set_flag(ADMIN_LOGGED_IN_KEY, value)

    def _set_flag(self, key: str, value: bool) -> None:
        if value:
            self.persistent.set(key, "true")
        else:
            self.persistent.remove(key)

    @property
    def current_user(self) -> Optional[User]:
        result = EntityStore(self.persistent).try_load(CURRENT_USER_KEY)
        if not result.is_ok or not isinstance(result.value, dict):
            return None
        try:
            return User.model_validate(result.value)
        except ValueError:
            return None

    @current_user.setter
    def current_user(self, user: Optional[User]) -> None:
        if user is None:
            self.persistent.remove(CURRENT_USER_KEY)
        else:
            self.persistent.set(CURRENT_USER_KEY, json.dumps(user.to_json()))

    @property
    def redirect_after_login(self) -> Optional[str]:
        return self.scratch.get(REDIRECT_AFTER_LOGIN_KEY)

    @redirect_after_login.setter
    def redirect_after_login(self, path: Optional[str]) -> None:
        if path is None:
            self.scratch.remove(REDIRECT_AFTER_LOGIN_KEY)
        else:
            self.scratch.set(REDIRECT_AFTER_LOGIN_KEY, path)

    def pop_redirect_after_login(self, default: str = HOME_PATH) -> str:
        path = self.redirect_after_login or default
        self.redirect_after_login = None
        return path

    def clear(self) -> None:
        self.user_logged_in = False
        self.admin_logged_in = False
        self.current_user = None


class SessionRegistry:
    """Map session ids (from the ``session_id`` cookie) to contexts.

    Flags are namespaced into the shared persistent backend so they
    survive a restart; the scratch backend is per process. Contexts idle
    for longer than ``ttl`` seconds, or beyond the ``maxsize`` most
    recent, are dropped together with their scratch values.
    """

    def __init__(self, persistent: KeyValueBackend, maxsize: int = 10000, ttl: float = 86400.0) -> None:
        self.persistent = persistent
        self._lock = threading.Lock()
        self._sessions: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)

    @staticmethod
    def new_id() -> str:
        return secrets.token_urlsafe(16)

    def get(self, session_id: str) -> SessionContext:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = SessionContext(NamespacedBackend(self.persistent, f"session-{session_id}-"))
            # Re-inserting restarts the idle timer.
            self._sessions[session_id] = session
            return session

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def _snapshot(account: Account) -> User:
    return User(id=account.id, name=account.name, email=account.email, role=account.role)


class AuthService:
    def __init__(self, accounts: AccountRepository) -> None:
        self.accounts = accounts

    def login(self, session: SessionContext, email: str, password: str) -> User:
        account = self.accounts.find_by_email(email)
        if account is None or not check_password_hash(account.password_hash, password):
            logger.warning("Failed login for %s", email)
            raise InvalidCredentials()
        user = _snapshot(account)
        session.user_logged_in = True
        session.admin_logged_in = account.role == "admin"
        session.current_user = user
        logger.info("User %s logged in (role=%s)", user.id, user.role)
        return user

    def register(self, session: SessionContext, name: str, email: str, password: str) -> User:
        account = self.accounts.add(name=name, email=email, password=password)
        user = _snapshot(account)
        session.user_logged_in = True
        session.admin_logged_in = False
        session.current_user = user
        logger.info("Registered user %s", user.id)
        return user

    def logout(self, session: SessionContext) -> None:
        session.clear()

    def is_authenticated(self, session: SessionContext) -> bool:
        return session.user_logged_in

    def is_admin(self, session: SessionContext) -> bool:
        user = session.current_user
        return session.admin_logged_in and user is not None and user.role == "admin"

    def current_user(self, session: SessionContext) -> Optional[User]:
        return session.current_user

    def update_profile(self, session: SessionContext, changes: ProfileUpdate) -> User:
        user = session.current_user
        if not self.is_authenticated(session) or user is None:
            raise NotAuthenticated()
        updates = changes.model_dump(exclude_none=True)
        if "email" in updates and updates["email"].lower() != user.email.lower():
            if self.accounts.find_by_email(updates["email"]) is not None:
                raise EmailAlreadyRegistered()
        # The seeded admin lives in the collection too, so every user is updatable.
        self.accounts.update(user.id, **updates)
        updated = user.model_copy(update=updates)
        session.current_user = updated
        return updated


# --- Guards ------------------------------------------------------------------

class GuardState(str, Enum):
    CHECKING = "checking"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass
class GuardDecision:
    state: GuardState
    redirect_to: Optional[str] = None
    notification: Optional[Notification] = None

    @property
    def granted(self) -> bool:
        return self.state is GuardState.GRANTED

    def raise_if_denied(self) -> None:
        if self.state is GuardState.DENIED:
            note = self.notification
            raise AccessDenied(
                title=note.title if note else "Access denied",
                description=note.description if note else "",
                redirect_to=self.redirect_to or LOGIN_PATH,
            )


class Guard:
    """One guard per mounted protected page.

    Starts in CHECKING and resolves exactly once to GRANTED or DENIED;
    later calls to ``evaluate`` return the settled decision.
    """

    def __init__(self, auth: AuthService, admin_only: bool = False) -> None:
        self.auth = auth
        self.admin_only = admin_only
        self.state = GuardState.CHECKING
        self._decision: Optional[GuardDecision] = None

    def evaluate(self, session: SessionContext, path: str) -> GuardDecision:
        if self._decision is not None:
            return self._decision
        try:
            decision = self._check(session, path)
        except Exception:
            logger.exception("Guard check failed for %s", path)
            decision = GuardDecision(
                GuardState.DENIED,
                redirect_to=LOGIN_PATH,
                notification=Notification(
                    title="Access denied", description="Please login to continue"
                ),
            )
        self.state = decision.state
        self._decision = decision
        return decision

    def _check(self, session: SessionContext, path: str) -> GuardDecision:
        if not self.auth.is_authenticated(session):
            session.redirect_after_login = path
            if self.admin_only:
                note = Notification(title="Access denied", description="Please login to access the admin area")
            else:
                note = Notification(title="Login required", description="Please login to access this feature")
            logger.info("Guard sent anonymous visitor of %s to login", path)
            return GuardDecision(GuardState.DENIED, redirect_to=LOGIN_PATH, notification=note)
        if self.admin_only and not self.auth.is_admin(session):
            logger.info("Guard refused non-admin access to %s", path)
            return GuardDecision(
                GuardState.DENIED,
                redirect_to=HOME_PATH,
                notification=Notification(
                    title="Access denied",
                    description="You need administrator rights to view this page",
                ),
            )
        return GuardDecision(GuardState.GRANTED)


def require_auth(auth: AuthService, session: SessionContext, path: str) -> GuardDecision:
    return Guard(auth).evaluate(session, path)


def require_admin(auth: AuthService, session: SessionContext, path: str) -> GuardDecision:
    return Guard(auth, admin_only=True).evaluate(session, path)
