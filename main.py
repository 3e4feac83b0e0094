# file: main.py

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from app.controllers.alerts import router as alerts_router
from app.controllers.notification import router as notification_router
from app.controllers.session import router as session_router
from app.database.connection import AsyncSessionLocal, init_db
from app.services.api_client import ApiClient
from app.services.auth_session import AuthSession
from app.services.kv_store import KeyValueStore
from app.services.notification_center import NotificationCenter
from app.services.notification_service import NotificationService
from app.services.push import build_push_sender

load_dotenv()

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="CareCompanion Notification API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(session_router, prefix="/api/session", tags=["session"])
app.include_router(notification_router, prefix="/api/notifications", tags=["notifications"])
app.include_router(alerts_router, prefix="/api", tags=["alerts"])


def build_notification_center() -> NotificationCenter:
    session = AuthSession()
    service = NotificationService(ApiClient(session))
    return NotificationCenter(session, service, KeyValueStore(AsyncSessionLocal), build_push_sender())


@app.get("/")
async def root():
    return {"message": "CareCompanion Notification API is running"}


@app.on_event("startup")
async def startup_event():
    await init_db()
    app.state.notification_center = build_notification_center()


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.notification_center.cancel_all_notifications()
