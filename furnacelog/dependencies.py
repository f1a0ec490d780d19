"""Shared FastAPI dependencies."""
from fastapi import Depends, HTTPException, status
from sqlmodel import Session

from furnacelog.db.config import get_session
from furnacelog.errors import NotFoundError
from furnacelog.middleware.auth import CurrentUser, get_current_user
from furnacelog.models.home import Home


def get_owned_home(
    home_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> Home:
    """Load the home in the path and verify it belongs to the authenticated user."""
    home = session.get(Home, home_id)
    if home is None:
        raise NotFoundError("Home", home_id)

    if home.user_id != current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this home"
        )
    return home
