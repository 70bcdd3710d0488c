from cinedesk.main import run

run()
