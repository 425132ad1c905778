from __future__ import annotations

"""Exception type raised while reading auto-close configuration."""


class ConfigurationError(RuntimeError):
    """A setting is missing, malformed or out of range."""

    @classmethod
    def invalid_value(cls, setting: str, value, reason: str = "") -> "ConfigurationError":
        message = f"Setting {setting} has unusable value {value!r}"
        if reason:
            message = f"{message}: {reason}"
        return cls(message)

    @classmethod
    def missing_value(cls, setting: str, hint: str = "") -> "ConfigurationError":
        message = f"Setting {setting} is required but not configured"
        if hint:
            message = f"{message} ({hint})"
        return cls(message)

    @classmethod
    def unreadable_file(cls, path, reason: str = "") -> "ConfigurationError":
        """Create error for a defaults file that exists but cannot be used."""
        message = f"Cannot read configuration defaults from {path}"
        if reason:
            message = f"{message}: {reason}"
        return cls(message)


__all__ = ["ConfigurationError"]
