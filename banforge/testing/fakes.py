"""In-process stand-ins for the collaborators BanForge talks to."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from ..domain.exceptions import ExternalSanctionFailed


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        self.now = self.now + (delta or timedelta(**kwargs))
        return self.now


@dataclass
class FakeSanctionsAuthority:
    """Records sanctions; set ``fail`` to make the next calls raise."""

    fail: bool = False
    created: list[dict] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    active: dict[str, str] = field(default_factory=dict)

    async def create_sanction(
        self, subject_id: str, *, justification: str, expires_at: datetime | None
    ) -> str | None:
        if self.fail:
            raise ExternalSanctionFailed(
                "Sanctions API rejected the request",
                status_code=400,
                detail={"errorCode": "errors.com.epicgames.validation"},
            )
        reference_id = f"ref-{len(self.created) + 1}"
        self.created.append(
            {
                "subject_id": subject_id,
                "justification": justification,
                "expires_at": expires_at,
                "reference_id": reference_id,
            }
        )
        self.active[reference_id] = subject_id
        return reference_id

    async def remove_sanction(self, reference_id: str) -> None:
        if self.fail:
            raise ExternalSanctionFailed("Sanctions API unreachable")
        self.removed.append(reference_id)
        self.active.pop(reference_id, None)


@dataclass
class RecordingBackupChannel:
    """Keeps every delivered file instead of sending it anywhere."""

    accept: bool = True
    deliveries: list[tuple[str, bytes, str]] = field(default_factory=list)

    async def deliver(self, filename: str, data: bytes, caption: str) -> bool:
        if self.accept:
            self.deliveries.append((filename, data, caption))
        return self.accept
