"""BanForge public API."""

__version__ = "0.1.0"

from .app import ServiceApp
from .config import BanForgeConfig

__all__ = [
    "BanForgeConfig",
    "ServiceApp",
    "__version__",
]
