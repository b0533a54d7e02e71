"""Factories for tests and prototyping."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from faker import Faker

from ..storage.base import PlayerRecord
from ..storage.documents import record_to_document


@dataclass(slots=True)
class PlayerFactory:
    faker: Faker = field(default_factory=Faker)

    def identity(self) -> str:
        """A product user id in the 32-hex-character EOS form."""
        return self.faker.unique.hexify(text="^" * 32)

    def build_record(self, player_id: str | None = None, **overrides: Any) -> PlayerRecord:
        seen = overrides.pop("last_seen", None) or datetime.now(timezone.utc)
        username = overrides.pop("username", None) or self.faker.user_name()
        record = PlayerRecord(
            player_id=player_id or self.identity(),
            username=username,
            aliases=[username],
            first_seen=overrides.pop("first_seen", None) or seen - timedelta(days=1),
            last_seen=seen,
            wallet={
                "sheckles": float(self.faker.random_int(0, 5000)),
                "scrap": float(self.faker.random_int(0, 500)),
            },
        )
        for key, value in overrides.items():
            setattr(record, key, value)
        return record

    def build_document(self, player_id: str | None = None, **overrides: Any) -> dict[str, Any]:
        return record_to_document(self.build_record(player_id, **overrides))

    def batch(self, count: int) -> Iterable[PlayerRecord]:
        for _ in range(count):
            yield self.build_record()
