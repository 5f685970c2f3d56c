"""Models package."""
from registry.models.studio import Studio
from registry.models.game import Game
from registry.models.license import License
from registry.models.api_key import APIKey
from registry.models.session import Session
from registry.models.usage import UsageRecord

__all__ = ["Studio", "Game", "License", "APIKey", "Session", "UsageRecord"]
