from fastapi import APIRouter, Depends

from ..auth import SessionContext
from ..dependencies import get_session
from ..models import ThemePreference
from ..storage import THEME_KEY


router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@router.get("/theme", response_model=ThemePreference)
def get_theme(session: SessionContext = Depends(get_session)) -> ThemePreference:
    stored = session.persistent.get(THEME_KEY)
    if stored in ("light", "dark", "system"):
        return ThemePreference(theme=stored)
    return ThemePreference()


@router.put("/theme", response_model=ThemePreference)
def set_theme(pref: ThemePreference, session: SessionContext = Depends(get_session)) -> ThemePreference:
    session.persistent.set(THEME_KEY, pref.theme)
    return pref
