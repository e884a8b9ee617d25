# careconnect/router/routers.py

from fastapi import FastAPI
from careconnect.auth.auth_controller import router as auth_router
from careconnect.modules.notification_settings.settings_controller import router as notification_settings_router

def include_routers(app: FastAPI) -> None:
    """Include all API routers in the FastAPI application."""
    app.include_router(auth_router)
    app.include_router(notification_settings_router)
