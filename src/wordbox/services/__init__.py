"""Services layer - settings and external integrations."""

from wordbox.services.settings_manager import SettingsManager

# Lookup services
from wordbox.services.lookup import GeminiLookupService, LookupResult, LookupService, NullLookupService

__all__ = [
    "SettingsManager",
    "LookupService",
    "LookupResult",
    "NullLookupService",
    "GeminiLookupService",
]
