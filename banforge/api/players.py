"""Player tracking and ban endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..app import ServiceApp
from ..domain.bans import ban_duration
from ..domain.exceptions import BanForgeError, InvalidIdentity
from .dependencies import get_service_app, require_admin
from .schemas import BanRequest, PlayerIdRequest, TrackRequest
from .serializers import player_to_json

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Players"])


@router.post("/players/track")
async def track_player(
    body: TrackRequest, service: ServiceApp = Depends(get_service_app)
) -> JSONResponse:
    """Heartbeat from the game client; answers with the current ban status."""
    wallet = {"sheckles": body.sheckles, "scrap": body.scrap}
    try:
        profile = await service.player_service.track(
            body.productUserId, body.username, wallet=wallet  # type: ignore[arg-type]
        )
    except InvalidIdentity as exc:
        logger.info("Rejected heartbeat: %s", exc)
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid ID"})
    except BanForgeError as exc:
        logger.error("Heartbeat for %s failed: %s", body.productUserId, exc)
        return JSONResponse(status_code=500, content={"success": False, "error": "Tracking failed"})
    logger.debug("Tracked %s (%s).", profile.username, profile.player_id)
    return JSONResponse(content={"success": True, "isBanned": profile.is_banned})


@router.get("/players", dependencies=[Depends(require_admin)])
async def list_players(service: ServiceApp = Depends(get_service_app)) -> dict:
    profiles = await service.player_service.list_profiles()
    return {"success": True, "players": [player_to_json(profile) for profile in profiles]}


@router.get("/players/{product_user_id}", dependencies=[Depends(require_admin)])
async def get_player(product_user_id: str, service: ServiceApp = Depends(get_service_app)) -> dict:
    profile = await service.player_service.fetch(product_user_id)
    return {"success": True, "player": player_to_json(profile)}


@router.post("/ban", dependencies=[Depends(require_admin)])
async def ban_player(body: BanRequest, service: ServiceApp = Depends(get_service_app)) -> dict:
    profile = await service.admin_service.ban_player(
        body.productUserId, reason=body.reason, duration=ban_duration(body.durationMinutes)
    )
    return {"success": True, "player": player_to_json(profile)}


@router.post("/unban", dependencies=[Depends(require_admin)])
async def unban_player(body: PlayerIdRequest, service: ServiceApp = Depends(get_service_app)) -> dict:
    await service.admin_service.unban_player(body.productUserId)
    return {"success": True}


@router.post("/delete", dependencies=[Depends(require_admin)])
async def delete_player(
    body: PlayerIdRequest, service: ServiceApp = Depends(get_service_app)
) -> dict:
    await service.admin_service.delete_player(body.productUserId)
    return {"success": True}
