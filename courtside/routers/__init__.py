"""
FastAPI routers grouped by domain (auth/users, events).

Each file inside this package exposes an APIRouter that is included by
create_app() in app.py.
"""
