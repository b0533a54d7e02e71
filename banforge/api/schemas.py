"""Request models for the HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class TrackRequest(BaseModel):
    productUserId: str | None = None
    username: str | None = None
    sheckles: float | None = None
    scrap: float | None = None


class BanRequest(BaseModel):
    productUserId: str
    reason: str | None = None
    durationMinutes: float | None = Field(default=None, allow_inf_nan=False)


class PlayerIdRequest(BaseModel):
    productUserId: str


class SnapshotCreateRequest(BaseModel):
    label: str | None = None


class RestorePayloadRequest(BaseModel):
    players: list[dict[str, Any]] = Field(default_factory=list)
