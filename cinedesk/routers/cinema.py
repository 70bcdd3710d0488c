from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from cinedesk.database import get_db
from cinedesk.models import Cinema
from cinedesk.security import require_admin

router = APIRouter()


class CinemaInput(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class TheaterSummary(BaseModel):
    id: int
    number: int
    rows: int
    cols: int

    model_config = ConfigDict(from_attributes=True)


class CinemaOut(BaseModel):
    id: int
    name: str
    theaters: list[TheaterSummary] = []

    model_config = ConfigDict(from_attributes=True)


def find_cinema(db: Session, cinema_id: int) -> Cinema:
    cinema = db.get(Cinema, cinema_id)
    if not cinema:
        raise HTTPException(404, f"Cinema {cinema_id} not found")
    return cinema


def ensure_unique_name(db: Session, name: str, cinema_id=None):
    query = db.query(Cinema).filter(Cinema.name == name)
    if cinema_id is not None:
        query = query.filter(Cinema.id != cinema_id)
    if query.first():
        raise HTTPException(400, f"Cinema {name} already exists")


@router.get("")
def get_cinemas(db: Session = Depends(get_db)):
    cinemas = db.query(Cinema).order_by(Cinema.name).all()
    return {
        "success": True,
        "count": len(cinemas),
        "data": [CinemaOut.model_validate(c) for c in cinemas],
    }


@router.get("/{cinema_id}")
def get_cinema(cinema_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": CinemaOut.model_validate(find_cinema(db, cinema_id))}


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def add_cinema(item: CinemaInput, db: Session = Depends(get_db)):
    ensure_unique_name(db, item.name)

    cinema = Cinema(name=item.name)
    db.add(cinema)
    db.commit()
    db.refresh(cinema)
    return {"success": True, "data": CinemaOut.model_validate(cinema)}


@router.put("/{cinema_id}", dependencies=[Depends(require_admin)])
def update_cinema(cinema_id: int, item: CinemaInput, db: Session = Depends(get_db)):
    cinema = find_cinema(db, cinema_id)
    ensure_unique_name(db, item.name, cinema_id)

    cinema.name = item.name
    db.commit()
    db.refresh(cinema)
    return {"success": True, "data": CinemaOut.model_validate(cinema)}


@router.delete("/{cinema_id}", dependencies=[Depends(require_admin)])
def delete_cinema(cinema_id: int, db: Session = Depends(get_db)):
    cinema = find_cinema(db, cinema_id)

    db.delete(cinema)
    db.commit()
    return {"success": True, "message": f"Cinema {cinema_id} deleted"}
