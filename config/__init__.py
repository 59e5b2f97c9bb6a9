"""Shared configuration package for the relay microservices."""

from .shared_settings import SharedSettings, shared_settings

__all__ = ["SharedSettings", "shared_settings"]
