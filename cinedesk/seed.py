"""
Fill the configured database with demo cinemas, theaters, movies and a week
of showtimes, plus an ``admin`` account.

    python -m cinedesk.seed
"""

import datetime
import random

from faker import Faker
from tqdm import tqdm
import structlog

from cinedesk.config import get_settings
from cinedesk.database import Base, create_db_engine, create_session_factory
from cinedesk.logging_config import configure_logging
from cinedesk.models import Cinema, Movie, Showtime, Theater, User, price
from cinedesk.security import hash_password

logger = structlog.get_logger(__name__)

fake = Faker()

NUM_CINEMAS = 3
THEATERS_PER_CINEMA = 4
DAYS = 7

MIN_ROWS = 8
MIN_COLS = 6

FILMS = [
    ("Avengers: Endgame", 181),
    ("The Conjuring", 112),
    ("Frozen", 102),
    ("Dune: Part Two", 166),
    ("Detective Conan: The Million-dollar Pentagram", 111),
]

TIMES = [datetime.time(11, 0), datetime.time(16, 0), datetime.time(20, 30)]


def seed(db, admin_password: str = "admin123"):
    db.add(User(
        username="admin",
        email="admin@cinedesk.local",
        password=hash_password(admin_password),
        role="admin",
    ))

    theaters = []
    for i in range(1, NUM_CINEMAS + 1):
        cinema = Cinema(name=f"{fake.city()} Cineplex {i}")
        db.add(cinema)
        db.flush()

        for number in range(1, THEATERS_PER_CINEMA + 1):
            theater = Theater(
                cinema_id=cinema.id,
                number=number,
                rows=random.randint(MIN_ROWS, MIN_ROWS + 5),
                cols=random.randint(MIN_COLS, MIN_COLS + 5),
            )
            db.add(theater)
            theaters.append(theater)
    db.commit()

    movies = []
    for name, length in FILMS:
        movie = Movie(name=name, length=length, img=fake.image_url(), price=price(length))
        db.add(movie)
        movies.append(movie)
    db.commit()

    today = datetime.date.today()
    slots = [
        (today + datetime.timedelta(days=d), hm, theater)
        for d in range(DAYS)
        for theater in theaters
        for hm in TIMES
    ]
    for day, hm, theater in tqdm(slots, desc="Building showtimes", unit="showtime"):
        db.add(Showtime(
            theater_id=theater.id,
            movie_id=random.choice(movies).id,
            starts_at=datetime.datetime.combine(day, hm),
            is_release=True,
        ))
    db.commit()

    return len(slots)


def main():
    settings = get_settings()
    configure_logging(settings.log_level)

    engine = create_db_engine(settings.database)
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    logger.info("Tables recreated", database=engine.url.render_as_string(hide_password=True))

    db = create_session_factory(engine)()
    try:
        count = seed(db)
    finally:
        db.close()
    logger.info("Seeding complete", showtimes=count)


if __name__ == "__main__":
    main()
