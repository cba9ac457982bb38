"""Service layer helpers (settings)."""

from .settings import SCOPE_POLICY_CHOICES, Settings, SettingsStore

__all__ = ["SCOPE_POLICY_CHOICES", "Settings", "SettingsStore"]
