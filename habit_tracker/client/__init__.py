from .api import ApiError, TrackerClient
from .state import AppState
from .ticker import LiveTicker

__all__ = ["ApiError", "AppState", "LiveTicker", "TrackerClient"]
