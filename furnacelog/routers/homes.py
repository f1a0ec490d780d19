"""Home router: registration and lookup of the caller's homes."""
from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select
from typing import List

from furnacelog.db.config import get_session
from furnacelog.dependencies import get_owned_home
from furnacelog.middleware.auth import CurrentUser, get_current_user
from furnacelog.models.home import Home
from furnacelog.schemas.home import HomeCreate, HomeResponse

router = APIRouter(tags=["Homes"])  # No prefix since main.py adds /api prefix


@router.post("/homes", response_model=HomeResponse, status_code=status.HTTP_201_CREATED)
async def create_home(
    home_data: HomeCreate,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Register a home for the authenticated user."""
    home = Home(user_id=current_user.user_id, **home_data.model_dump())
    session.add(home)
    session.commit()
    session.refresh(home)
    return home


@router.get("/homes", response_model=List[HomeResponse])
async def list_homes(
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """List the authenticated user's homes."""
    statement = select(Home).where(Home.user_id == current_user.user_id).order_by(Home.id)
    return session.exec(statement).all()


@router.get("/homes/{home_id}", response_model=HomeResponse)
async def get_home(home: Home = Depends(get_owned_home)):
    """Get a single home."""
    return home
