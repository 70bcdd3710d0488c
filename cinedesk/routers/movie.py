from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from cinedesk.database import get_db
from cinedesk.models import Movie, Showtime, price, utcnow
from cinedesk.security import require_admin

router = APIRouter()


class MovieInput(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    length: int = Field(gt=0)
    img: Optional[str] = None


class MovieOut(BaseModel):
    id: int
    name: str
    length: int
    img: Optional[str] = None
    price: int

    model_config = ConfigDict(from_attributes=True)


def find_movie(db: Session, movie_id: int) -> Movie:
    movie = db.get(Movie, movie_id)
    if not movie:
        raise HTTPException(404, f"Movie {movie_id} not found")
    return movie


@router.get("")
def get_movies(db: Session = Depends(get_db)):
    movies = db.query(Movie).order_by(Movie.id).all()
    return {
        "success": True,
        "count": len(movies),
        "data": [MovieOut.model_validate(m) for m in movies],
    }


@router.get("/showing")
def get_showing_movies(db: Session = Depends(get_db)):
    """Movies with at least one released showtime that has not started yet."""
    movies = (
        db.query(Movie)
        .join(Showtime, Showtime.movie_id == Movie.id)
        .filter(Showtime.starts_at >= utcnow(), Showtime.is_release.is_(True))
        .distinct()
        .order_by(Movie.id)
        .all()
    )
    return {
        "success": True,
        "count": len(movies),
        "data": [MovieOut.model_validate(m) for m in movies],
    }


@router.get("/{movie_id}")
def get_movie(movie_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": MovieOut.model_validate(find_movie(db, movie_id))}


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def add_movie(item: MovieInput, db: Session = Depends(get_db)):
    movie = Movie(
        name=item.name,
        length=item.length,
        img=item.img,
        price=price(item.length),
    )
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return {"success": True, "data": MovieOut.model_validate(movie)}


@router.put("/{movie_id}", dependencies=[Depends(require_admin)])
def update_movie(movie_id: int, item: MovieInput, db: Session = Depends(get_db)):
    movie = find_movie(db, movie_id)

    movie.name = item.name
    movie.length = item.length
    movie.img = item.img
    movie.price = price(item.length)
    db.commit()
    db.refresh(movie)
    return {"success": True, "data": MovieOut.model_validate(movie)}


@router.delete("/{movie_id}", dependencies=[Depends(require_admin)])
def delete_movie(movie_id: int, db: Session = Depends(get_db)):
    movie = find_movie(db, movie_id)

    db.delete(movie)
    db.commit()
    return {"success": True, "message": f"Movie {movie_id} deleted"}
