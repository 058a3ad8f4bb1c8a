"""ASGI entry point: ``uvicorn courtside.app_factory:app``."""
from courtside.app import create_app

app = create_app()

__all__ = ["app", "create_app"]
