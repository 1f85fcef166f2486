from .events import ChangeEvent
from .channel import ChangeChannel, Subscription

__all__ = ["ChangeEvent", "ChangeChannel", "Subscription"]
