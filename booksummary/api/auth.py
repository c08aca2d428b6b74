"""
Account endpoints under /api/auth plus the route guard check under /api/guard.

Login and registration answer with the user snapshot and the page the
client should go to next: the page a guard stored before sending the
visitor to /login, or the home page.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..auth import Guard, GuardDecision, SessionContext
from ..dependencies import Services, get_services, get_session, user_required
from ..models import LoginRequest, LoginResponse, ProfileUpdate, RegisterRequest, User


router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/auth/login", response_model=LoginResponse)
def login(
    req: LoginRequest,
    session: SessionContext = Depends(get_session),
    services: Services = Depends(get_services),
) -> LoginResponse:
    user = services.auth.login(session, req.email, req.password)
    default = "/admin" if user.role == "admin" else "/"
    return LoginResponse(user=user, redirect_to=session.pop_redirect_after_login(default))


@router.post("/auth/register", response_model=LoginResponse, status_code=201)
def register(
    req: RegisterRequest,
    session: SessionContext = Depends(get_session),
    services: Services = Depends(get_services),
) -> LoginResponse:
    user = services.auth.register(session, req.name, req.email, req.password)
    return LoginResponse(user=user, redirect_to=session.pop_redirect_after_login())


@router.post("/auth/logout")
def logout(
    session: SessionContext = Depends(get_session),
    services: Services = Depends(get_services),
):
    services.auth.logout(session)
    return {"status": "ok"}


@router.get("/auth/me", response_model=User)
def me(user: User = Depends(user_required("/profile"))) -> User:
    return user


@router.patch("/auth/me", response_model=User)
def update_me(
    changes: ProfileUpdate,
    user: User = Depends(user_required("/profile")),
    session: SessionContext = Depends(get_session),
    services: Services = Depends(get_services),
) -> User:
    return services.auth.update_profile(session, changes)


@router.get("/guard")
def guard(
    path: str = Query(..., description="Client route to check, e.g. /admin or /profile"),
    session: SessionContext = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Evaluate the guard a client mounts on ``path``."""
    admin_only = path == "/admin" or path.startswith("/admin/")
    decision: GuardDecision = Guard(services.auth, admin_only=admin_only).evaluate(session, path)
    return {
        "state": decision.state.value,
        "redirectTo": decision.redirect_to,
        "notification": decision.notification.model_dump() if decision.notification else None,
    }
