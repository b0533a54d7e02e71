"""Snapshot/backup endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..app import ServiceApp
from .dependencies import get_service_app, require_admin
from .schemas import RestorePayloadRequest, SnapshotCreateRequest
from .serializers import snapshot_summary, snapshot_to_json

router = APIRouter(prefix="/api/backups", tags=["Backups"], dependencies=[Depends(require_admin)])


@router.post("")
async def create_snapshot(
    body: SnapshotCreateRequest | None = None, service: ServiceApp = Depends(get_service_app)
) -> dict:
    snapshot = await service.admin_service.create_snapshot(body.label if body else None)
    return {"success": True, "snapshot": snapshot_summary(snapshot) if snapshot else None}


@router.get("")
async def list_snapshots(service: ServiceApp = Depends(get_service_app)) -> dict:
    snapshots = await service.snapshot_service.list_snapshots()
    return {"success": True, "snapshots": [snapshot_summary(snap) for snap in snapshots]}


@router.post("/send")
async def send_backup(service: ServiceApp = Depends(get_service_app)) -> dict:
    """Take a snapshot now and push it to the backup chat."""
    result = await service.run_backup(manual=True, actor="api")
    return {
        "success": True,
        "snapshot": snapshot_summary(result.snapshot) if result.snapshot else None,
        "delivered": result.delivered,
    }


@router.post("/restore")
async def restore_payload(
    body: RestorePayloadRequest, service: ServiceApp = Depends(get_service_app)
) -> dict:
    restored = await service.admin_service.restore(players=body.players)
    return {"success": True, "restored": restored}


@router.get("/{snapshot_id}")
async def get_snapshot(snapshot_id: str, service: ServiceApp = Depends(get_service_app)) -> dict:
    snapshot = await service.snapshot_service.get_snapshot(snapshot_id)
    return {"success": True, "snapshot": snapshot_to_json(snapshot)}


@router.post("/{snapshot_id}/restore")
async def restore_snapshot(snapshot_id: str, service: ServiceApp = Depends(get_service_app)) -> dict:
    restored = await service.admin_service.restore(snapshot_id=snapshot_id)
    return {"success": True, "restored": restored}


@router.delete("/{snapshot_id}")
async def delete_snapshot(snapshot_id: str, service: ServiceApp = Depends(get_service_app)) -> dict:
    await service.admin_service.delete_snapshot(snapshot_id)
    return {"success": True}
