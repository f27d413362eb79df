"""ASGI entry point: ``uvicorn supply_desk.asgi:app``."""

from supply_desk.main import create_app

app = create_app()
