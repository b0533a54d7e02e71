import json

import pytest

from banforge.loaders import load_backup_file, validate_backup_data, validate_backup_file

PLAYER = {"productUserId": "abc123", "username": "Bob", "isBanned": False}


@pytest.mark.parametrize(
    "data",
    [
        [PLAYER],
        {"players": [PLAYER]},
        {"success": True, "snapshot": {"id": "snap1", "payload": [PLAYER]}},
    ],
)
def test_load_backup_file_accepts_known_shapes(tmp_path, data):
    path = tmp_path / "backup.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    assert validate_backup_file(path) == []
    assert load_backup_file(path) == [PLAYER]


def test_validate_backup_data_reports_problems():
    assert validate_backup_data("nope") == ["Backup must be a JSON array or object."]
    assert validate_backup_data({"foo": 1}) == ["Backup does not contain any player entries."]
    assert validate_backup_data([{"username": "x"}]) == [
        "No entry in the backup has a usable player identity."
    ]
    assert validate_backup_data([]) == []


def test_load_backup_file_raises_on_invalid(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"players": [{"playerId": "undefined"}]}), encoding="utf-8")
    with pytest.raises(ValueError, match="Backup validation failed"):
        load_backup_file(path)


def test_non_json_backup_is_reported(tmp_path):
    path = tmp_path / "GW_Backup.json"
    path.write_text("{not json", encoding="utf-8")
    errors = validate_backup_file(path)
    assert len(errors) == 1
    assert errors[0].startswith("Backup is not valid JSON")
    with pytest.raises(ValueError, match="Backup validation failed"):
        load_backup_file(path)
