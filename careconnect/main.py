# careconnect/main.py

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from careconnect.common.database.database import connect_to_db, close_db_connection
from careconnect.common.config import settings
from careconnect.common.logging_config import configure_logging
from careconnect.modules.notification_settings.remote_store import SettingsChangeBroker
from careconnect.router.routers import include_routers

configure_logging()

# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_db()
    app.state.settings_broker = SettingsChangeBroker()
    yield
    await close_db_connection()

# Initialize FastAPI app with lifespan manager
app = FastAPI(
    title="CareConnect API",
    description="Notification settings service for CareConnect patients, doctors and administrators",
    version="1.0.0",
    lifespan=lifespan
)

# Middleware for CORS using allowed origins from settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers from a separate file
include_routers(app)

# Root endpoint
@app.get("/")
async def root():
    return {"name": app.title, "version": app.version, "docs": "/docs"}
