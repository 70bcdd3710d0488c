from cinedesk.gateway.routing import RouteGroup
from cinedesk.routers import auth, cinema, movie, showtime, theater

RESOURCE_GROUPS = (
    RouteGroup("auth", auth.router),
    RouteGroup("cinema", cinema.router),
    RouteGroup("theater", theater.router),
    RouteGroup("movie", movie.router),
    RouteGroup("showtime", showtime.router),
)
