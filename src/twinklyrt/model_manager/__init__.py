"""Model helpers shared across the engine: JSON persistence and observer lists."""

from twinklyrt.model_manager.observer import ObserverManager
from twinklyrt.model_manager.persistence import PydanticPersistence

__all__ = [
    "ObserverManager",
    "PydanticPersistence",
]
