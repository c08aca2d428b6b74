"""Tests for login, registration and the route guards."""

import pytest

from booksummary.auth import Guard, GuardState, SessionContext, SessionRegistry, require_admin, require_auth
from booksummary.errors import AccessDenied, EmailAlreadyRegistered, InvalidCredentials
from booksummary.models import ProfileUpdate
from booksummary.storage import MemoryBackend


class TestLogin:
    """Session flags after login and logout."""

    def test_admin_login_is_idempotent(self, auth, session, settings):
        """Logging in twice as admin leaves the same session state."""
        auth.login(session, settings.admin_email, settings.admin_password)
        first = (session.user_logged_in, session.admin_logged_in, session.current_user)
        auth.login(session, settings.admin_email, settings.admin_password)
        second = (session.user_logged_in, session.admin_logged_in, session.current_user)

        assert first == second
        assert first[0] is True and first[1] is True
        assert first[2].role == "admin"

    def test_user_login_sets_only_user_flag(self, auth, accounts, session):
        """A regular account never gets the admin flag."""
        accounts.add("Reader", "reader@example.com", "Password1")
        user = auth.login(session, "reader@example.com", "Password1")

        assert user.role == "user"
        assert session.user_logged_in
        assert not session.admin_logged_in
        assert auth.is_authenticated(session)
        assert not auth.is_admin(session)

    def test_wrong_password(self, auth, session, settings):
        """A bad password raises and leaves the session anonymous."""
        with pytest.raises(InvalidCredentials):
            auth.login(session, settings.admin_email, "wrong")
        assert not session.user_logged_in
        assert session.current_user is None

    def test_logout_clears_flags(self, auth, session, settings):
        """Logout removes every session flag."""
        auth.login(session, settings.admin_email, settings.admin_password)
        auth.logout(session)
        assert not session.user_logged_in
        assert not session.admin_logged_in
        assert session.current_user is None

    def test_admin_flag_without_admin_snapshot_is_not_admin(self, auth, session):
        """is_admin needs both the flag and an admin snapshot."""
        session.user_logged_in = True
        session.admin_logged_in = True
        assert not auth.is_admin(session)


class TestRegistration:
    """Account creation through the auth service."""

    def test_register_logs_in(self, auth, session):
        """A new account is signed in right away."""
        user = auth.register(session, "New Reader", "new@example.com", "Password1")
        assert session.current_user == user
        assert session.user_logged_in
        assert not session.admin_logged_in

    def test_duplicate_email_any_case(self, auth, session):
        """Test@x.com then test@x.com is rejected."""
        auth.register(session, "First", "Test@x.com", "Password1")
        with pytest.raises(EmailAlreadyRegistered):
            auth.register(SessionContext(MemoryBackend()), "Second", "test@x.com", "Password1")

    def test_update_profile(self, auth, accounts, session):
        """Profile changes reach both the account and the session snapshot."""
        user = auth.register(session, "Old Name", "old@example.com", "Password1")
        updated = auth.update_profile(session, ProfileUpdate(name="New Name"))

        assert updated.name == "New Name"
        assert session.current_user.name == "New Name"
        assert accounts.find_by_email("old@example.com").id == user.id
        assert accounts.find_by_email("old@example.com").name == "New Name"


class TestGuards:
    """CHECKING -> GRANTED | DENIED decisions."""

    def test_anonymous_admin_page_goes_to_login(self, auth, session):
        """An anonymous visitor of /admin is sent to /login and remembered."""
        decision = require_admin(auth, session, "/admin")

        assert decision.state is GuardState.DENIED
        assert decision.redirect_to == "/login"
        assert session.redirect_after_login == "/admin"
        assert decision.notification.description == "Please login to access the admin area"

    def test_anonymous_user_page(self, auth, session):
        """User pages ask for a login with their own wording."""
        decision = require_auth(auth, session, "/profile")
        assert decision.redirect_to == "/login"
        assert decision.notification.title == "Login required"
        assert session.redirect_after_login == "/profile"

    def test_non_admin_goes_home(self, auth, accounts, session):
        """A signed-in user without admin rights is sent to the home page."""
        accounts.add("Reader", "reader@example.com", "Password1")
        auth.login(session, "reader@example.com", "Password1")
        decision = require_admin(auth, session, "/admin")

        assert decision.state is GuardState.DENIED
        assert decision.redirect_to == "/"
        assert session.redirect_after_login is None
        with pytest.raises(AccessDenied) as excinfo:
            decision.raise_if_denied()
        assert excinfo.value.status_code == 403

    def test_admin_is_granted(self, auth, session, settings):
        """The admin passes both guards."""
        auth.login(session, settings.admin_email, settings.admin_password)
        assert require_admin(auth, session, "/admin").granted
        assert require_auth(auth, session, "/profile").granted

    def test_guard_settles_once(self, auth, session, settings):
        """A settled guard does not re-evaluate."""
        guard = Guard(auth, admin_only=True)
        assert guard.state is GuardState.CHECKING
        assert guard.evaluate(session, "/admin").state is GuardState.DENIED

        auth.login(session, settings.admin_email, settings.admin_password)
        assert guard.evaluate(session, "/admin").state is GuardState.DENIED
        assert guard.state is GuardState.DENIED

    def test_unexpected_failure_redirects_to_login(self, auth, session, monkeypatch):
        """An error during the check becomes a denial, never an exception."""

        def boom(_session):
            raise RuntimeError("storage exploded")

        monkeypatch.setattr(auth, "is_authenticated", boom)
        decision = Guard(auth).evaluate(session, "/profile")
        assert decision.state is GuardState.DENIED
        assert decision.redirect_to == "/login"

    def test_pop_redirect_after_login(self, session):
        """The stored redirect is consumed once."""
        session.redirect_after_login = "/admin"
        assert session.pop_redirect_after_login() == "/admin"
        assert session.pop_redirect_after_login() == "/"


class TestSessionRegistry:
    """Session ids map onto a bounded set of contexts."""

    def test_same_id_same_context(self):
        """Repeated lookups return the context that holds the scratch values."""
        registry = SessionRegistry(MemoryBackend())
        registry.get("a").scratch.set("ai_api_key", "k")
        assert registry.get("a").scratch.get("ai_api_key") == "k"

    def test_least_recent_sessions_are_dropped(self):
        """Beyond maxsize the least recently used context goes, flags stay persisted."""
        persistent = MemoryBackend()
        registry = SessionRegistry(persistent, maxsize=2)
        first = registry.get("a")
        first.user_logged_in = True
        first.scratch.set("ai_api_key", "k")
        registry.get("b")
        registry.get("c")
        assert len(registry) == 2

        again = registry.get("a")
        assert again is not first
        assert again.scratch.get("ai_api_key") is None
        assert again.user_logged_in is True
