# routes.py
from fastapi import FastAPI
from controller.assistant_controller import assistant_router
from controller.health_controller import health_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(health_router)
    app.include_router(assistant_router)
