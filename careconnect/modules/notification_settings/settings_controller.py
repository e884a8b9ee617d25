# careconnect/modules/notification_settings/settings_controller.py
"""Notification settings controller with API routes."""

import json
from contextlib import aclosing

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from careconnect.auth.dependencies import get_current_user
from careconnect.common.utils.global_messages import GlobalMessages
from careconnect.models.models import User

from . import settings_service as service
from .remote_store import SettingsChangeBroker
from .schemas import (
    DeliveryRequest, DeliveryResponse, NotificationSettings, NotificationSettingsUpdate,
    SettingsActionResponse, SettingsChecksResponse, SettingsError, SettingsResponse,
    SettingsSuccess, role_for_user,
)
from .settings_resolver import SettingsResolver

router = APIRouter(prefix="/notification-settings", tags=["Notification Settings"])


def get_settings_broker(request: Request) -> SettingsChangeBroker:
    return request.app.state.settings_broker


def get_settings_resolver(
    current_user: User = Depends(get_current_user),
    broker: SettingsChangeBroker = Depends(get_settings_broker),
) -> SettingsResolver:
    return service.build_resolver(current_user, broker)


def _raise_if_failed(result: SettingsActionResponse) -> SettingsActionResponse:
    if not result.success:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.message)
    return result


@router.get("", response_model=SettingsResponse)
async def get_settings(
    current_user: User = Depends(get_current_user),
    resolver: SettingsResolver = Depends(get_settings_resolver),
):
    """Get the current notification settings for the signed-in user's role."""
    return await service.get_settings(resolver, current_user)


@router.put("", response_model=SettingsActionResponse)
async def replace_settings(
    request: NotificationSettings,
    current_user: User = Depends(get_current_user),
    resolver: SettingsResolver = Depends(get_settings_resolver),
):
    """
    Replace the notification settings.

    The settings are stored on this server's cache first; `saved_locally_only`
    is set when they could not be synced to the settings store.
    """
    return _raise_if_failed(await service.save_settings(resolver, current_user, request))


@router.patch("", response_model=SettingsActionResponse)
async def update_settings(
    request: NotificationSettingsUpdate,
    current_user: User = Depends(get_current_user),
    resolver: SettingsResolver = Depends(get_settings_resolver),
):
    """Change only the provided notification settings."""
    changes = request.changes()
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=GlobalMessages.SETTINGS_NOTHING_TO_UPDATE)
    return _raise_if_failed(await service.update_settings(resolver, current_user, changes))


@router.get("/stream")
async def stream_settings(
    current_user: User = Depends(get_current_user),
    resolver: SettingsResolver = Depends(get_settings_resolver),
):
    """Server-sent events with the resolved settings after every change."""
    role = role_for_user(current_user.role)

    async def event_stream():
        async with aclosing(resolver.observe(role)) as results:
            async for result in results:
                if isinstance(result, SettingsSuccess):
                    payload = {"status": "success", "settings": json.loads(result.settings.model_dump_json())}
                elif isinstance(result, SettingsError):
                    payload = {"status": "error", "message": result.message}
                else:
                    payload = {"status": "loading"}
                yield f"event: settings\ndata: {json.dumps(payload)}\n\n"

    return StreamingResponse(event_stream(), media_type="text/event-stream")


@router.get("/checks", response_model=SettingsChecksResponse)
async def get_checks(resolver: SettingsResolver = Depends(get_settings_resolver)):
    """Answer the quick delivery checks from the locally cached settings."""
    return service.get_checks(resolver)


@router.post("/evaluate", response_model=DeliveryResponse)
async def evaluate_delivery(
    request: DeliveryRequest,
    resolver: SettingsResolver = Depends(get_settings_resolver),
):
    """Decide how an incoming push notification should be presented."""
    decision = resolver.evaluate_delivery(request.kind, request.appointment_type)
    return DeliveryResponse(
        show=decision.show,
        sound=decision.sound,
        vibrate=decision.vibrate,
        show_preview=decision.show_preview,
    )
