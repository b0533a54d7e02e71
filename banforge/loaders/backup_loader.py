"""Load player backups from JSON exports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..storage.documents import extract_identity


def load_backup_file(path: str | Path) -> list[dict[str, Any]]:
    """Read a backup file and return its player documents.

    Accepts the bare list the chat-bot exports contain, an API listing
    (``{"players": [...]}``) or a snapshot detail (``{"snapshot": {"payload": [...]}}``).
    """
    try:
        data = _read_json(path)
    except ValueError as exc:
        raise ValueError(_format_errors("Backup validation failed", [str(exc)])) from exc
    errors = validate_backup_data(data)
    if errors:
        raise ValueError(_format_errors("Backup validation failed", errors))
    return extract_players(data)


def extract_players(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, list):
        return [entry for entry in data if isinstance(entry, dict)]
    if isinstance(data, dict):
        if isinstance(data.get("players"), list):
            return extract_players(data["players"])
        if isinstance(data.get("payload"), list):
            return extract_players(data["payload"])
        if isinstance(data.get("snapshot"), dict):
            return extract_players(data["snapshot"])
    return []


def validate_backup_file(path: str | Path) -> list[str]:
    """Validate a backup JSON file and return a list of errors."""
    try:
        data = _read_json(path)
    except ValueError as exc:
        return [str(exc)]
    return validate_backup_data(data)


def validate_backup_data(data: Any) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, (list, dict)):
        return ["Backup must be a JSON array or object."]
    players = extract_players(data)
    if not players and not (isinstance(data, list) and not data):
        errors.append("Backup does not contain any player entries.")
    if not any(extract_identity(entry) for entry in players) and players:
        errors.append("No entry in the backup has a usable player identity.")
    return errors


def _read_json(path: str | Path) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Backup is not valid JSON: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ValueError(f"Backup is not UTF-8 text: {exc.reason}") from exc


def _format_errors(title: str, errors: list[str]) -> str:
    return title + ":\n" + "\n".join(f"- {err}" for err in errors)
