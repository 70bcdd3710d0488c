from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
)
from sqlalchemy.orm import relationship

from cinedesk.database import Base


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def price(length):
    if length >= 180:
        return 50000
    if length >= 125:
        return 45000
    return 40000


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    username = Column(String(100), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(String(10), default="user", nullable=False)
    created_at = Column(DateTime, default=utcnow)


class Cinema(Base):
    __tablename__ = "cinemas"
    id = Column(Integer, primary_key=True)
    name = Column(String(200), unique=True, nullable=False)

    theaters = relationship(
        "Theater", back_populates="cinema", cascade="all, delete-orphan",
        order_by="Theater.number"
    )


class Theater(Base):
    __tablename__ = "theaters"
    id = Column(Integer, primary_key=True)
    cinema_id = Column(Integer, ForeignKey("cinemas.id"), nullable=False)
    number = Column(Integer, nullable=False)
    rows = Column(Integer, nullable=False)
    cols = Column(Integer, nullable=False)

    cinema = relationship("Cinema", back_populates="theaters")
    showtimes = relationship(
        "Showtime", back_populates="theater", cascade="all, delete-orphan"
    )

    __table_args__ = (UniqueConstraint("cinema_id", "number"),)


class Movie(Base):
    __tablename__ = "movies"
    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    length = Column(Integer, nullable=False)
    img = Column(String(500))
    price = Column(Integer, nullable=False)

    showtimes = relationship(
        "Showtime", back_populates="movie", cascade="all, delete-orphan"
    )


class Showtime(Base):
    __tablename__ = "showtimes"
    id = Column(Integer, primary_key=True)
    theater_id = Column(Integer, ForeignKey("theaters.id"), nullable=False)
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False)
    starts_at = Column(DateTime, nullable=False)
    is_release = Column(Boolean, default=True, nullable=False)

    theater = relationship("Theater", back_populates="showtimes")
    movie = relationship("Movie", back_populates="showtimes")
