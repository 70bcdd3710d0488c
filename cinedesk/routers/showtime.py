from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
import structlog

from cinedesk.database import get_db
from cinedesk.models import Movie, Showtime, Theater, utcnow
from cinedesk.security import require_admin

logger = structlog.get_logger(__name__)

router = APIRouter()


class ShowtimeInput(BaseModel):
    movie_id: int
    theater_id: int
    starts_at: datetime
    is_release: bool = True


class ShowtimeOut(BaseModel):
    id: int
    movie_id: int
    movie_name: str
    theater_id: int
    theater_number: int
    cinema_name: str
    starts_at: datetime
    is_release: bool


def showtime_to_dict(s: Showtime) -> dict:
    return ShowtimeOut(
        id=s.id,
        movie_id=s.movie_id,
        movie_name=s.movie.name,
        theater_id=s.theater_id,
        theater_number=s.theater.number,
        cinema_name=s.theater.cinema.name,
        starts_at=s.starts_at,
        is_release=s.is_release,
    ).model_dump(mode="json")


def find_showtime(db: Session, showtime_id: int) -> Showtime:
    showtime = db.get(Showtime, showtime_id)
    if not showtime:
        raise HTTPException(404, f"Showtime {showtime_id} not found")
    return showtime


def check_references(db: Session, item: ShowtimeInput):
    if not db.get(Movie, item.movie_id):
        raise HTTPException(404, f"Movie {item.movie_id} not found")
    if not db.get(Theater, item.theater_id):
        raise HTTPException(404, f"Theater {item.theater_id} not found")


def naive_utc(value: datetime) -> datetime:
    """Showtimes are stored as naive UTC"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@router.get("")
def get_showtimes(
    movie_id: Optional[int] = None,
    theater_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Showtime)
    if movie_id is not None:
        query = query.filter(Showtime.movie_id == movie_id)
    if theater_id is not None:
        query = query.filter(Showtime.theater_id == theater_id)
    showtimes = query.order_by(Showtime.starts_at, Showtime.id).all()
    return {
        "success": True,
        "count": len(showtimes),
        "data": [showtime_to_dict(s) for s in showtimes],
    }


@router.delete("/previous", dependencies=[Depends(require_admin)])
def delete_previous_showtimes(db: Session = Depends(get_db)):
    previous = db.query(Showtime).filter(Showtime.starts_at < utcnow()).all()
    for showtime in previous:
        db.delete(showtime)
    db.commit()

    logger.info("previous_showtimes_deleted", count=len(previous))
    return {"success": True, "count": len(previous)}


@router.get("/{showtime_id}")
def get_showtime(showtime_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": showtime_to_dict(find_showtime(db, showtime_id))}


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def add_showtime(item: ShowtimeInput, db: Session = Depends(get_db)):
    check_references(db, item)

    showtime = Showtime(
        movie_id=item.movie_id,
        theater_id=item.theater_id,
        starts_at=naive_utc(item.starts_at),
        is_release=item.is_release,
    )
    db.add(showtime)
    db.commit()
    db.refresh(showtime)
    return {"success": True, "data": showtime_to_dict(showtime)}


@router.put("/{showtime_id}", dependencies=[Depends(require_admin)])
def update_showtime(showtime_id: int, item: ShowtimeInput, db: Session = Depends(get_db)):
    showtime = find_showtime(db, showtime_id)
    check_references(db, item)

    showtime.movie_id = item.movie_id
    showtime.theater_id = item.theater_id
    showtime.starts_at = naive_utc(item.starts_at)
    showtime.is_release = item.is_release
    db.commit()
    db.refresh(showtime)
    return {"success": True, "data": showtime_to_dict(showtime)}


@router.delete("/{showtime_id}", dependencies=[Depends(require_admin)])
def delete_showtime(showtime_id: int, db: Session = Depends(get_db)):
    showtime = find_showtime(db, showtime_id)

    db.delete(showtime)
    db.commit()
    return {"success": True, "message": f"Showtime {showtime_id} deleted"}
