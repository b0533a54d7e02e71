"""External sanctions authority integration."""

from .client import EOSSanctionsClient
from .tokens import AccessToken, TokenCache

__all__ = ["AccessToken", "EOSSanctionsClient", "TokenCache"]
