"""Loaders for backup exports."""

from .backup_loader import (
    extract_players,
    load_backup_file,
    validate_backup_data,
    validate_backup_file,
)

__all__ = [
    "extract_players",
    "load_backup_file",
    "validate_backup_data",
    "validate_backup_file",
]
