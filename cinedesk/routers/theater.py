from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from cinedesk.database import get_db
from cinedesk.models import Cinema, Theater
from cinedesk.security import require_admin

router = APIRouter()


class TheaterInput(BaseModel):
    cinema_id: int
    number: int = Field(gt=0)
    rows: int = Field(gt=0, le=26)
    cols: int = Field(gt=0, le=120)


class TheaterUpdate(BaseModel):
    number: int = Field(gt=0)
    rows: int = Field(gt=0, le=26)
    cols: int = Field(gt=0, le=120)


class TheaterOut(BaseModel):
    id: int
    cinema_id: int
    cinema_name: str
    number: int
    rows: int
    cols: int
    seat_count: int


def theater_to_dict(t: Theater) -> dict:
    return TheaterOut(
        id=t.id,
        cinema_id=t.cinema_id,
        cinema_name=t.cinema.name,
        number=t.number,
        rows=t.rows,
        cols=t.cols,
        seat_count=t.rows * t.cols,
    ).model_dump()


def find_theater(db: Session, theater_id: int) -> Theater:
    theater = db.get(Theater, theater_id)
    if not theater:
        raise HTTPException(404, f"Theater {theater_id} not found")
    return theater


def ensure_free_number(db: Session, cinema_id: int, number: int, theater_id=None):
    query = db.query(Theater).filter(Theater.cinema_id == cinema_id, Theater.number == number)
    if theater_id is not None:
        query = query.filter(Theater.id != theater_id)
    if query.first():
        raise HTTPException(400, f"Theater {number} already exists in cinema {cinema_id}")


@router.get("")
def get_theaters(cinema_id: Optional[int] = None, db: Session = Depends(get_db)):
    query = db.query(Theater)
    if cinema_id is not None:
        query = query.filter(Theater.cinema_id == cinema_id)
    theaters = query.order_by(Theater.cinema_id, Theater.number).all()
    return {
        "success": True,
        "count": len(theaters),
        "data": [theater_to_dict(t) for t in theaters],
    }


@router.get("/{theater_id}")
def get_theater(theater_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": theater_to_dict(find_theater(db, theater_id))}


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def add_theater(item: TheaterInput, db: Session = Depends(get_db)):
    if not db.get(Cinema, item.cinema_id):
        raise HTTPException(404, f"Cinema {item.cinema_id} not found")
    ensure_free_number(db, item.cinema_id, item.number)

    theater = Theater(
        cinema_id=item.cinema_id,
        number=item.number,
        rows=item.rows,
        cols=item.cols,
    )
    db.add(theater)
    db.commit()
    db.refresh(theater)
    return {"success": True, "data": theater_to_dict(theater)}


@router.put("/{theater_id}", dependencies=[Depends(require_admin)])
def update_theater(theater_id: int, item: TheaterUpdate, db: Session = Depends(get_db)):
    theater = find_theater(db, theater_id)
    ensure_free_number(db, theater.cinema_id, item.number, theater_id)

    theater.number = item.number
    theater.rows = item.rows
    theater.cols = item.cols
    db.commit()
    db.refresh(theater)
    return {"success": True, "data": theater_to_dict(theater)}


@router.delete("/{theater_id}", dependencies=[Depends(require_admin)])
def delete_theater(theater_id: int, db: Session = Depends(get_db)):
    theater = find_theater(db, theater_id)

    db.delete(theater)
    db.commit()
    return {"success": True, "message": f"Theater {theater_id} deleted"}
