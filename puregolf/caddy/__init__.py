from .clubs import STANDARD_CLUBS, find_club
from .personalization import calculate_tendencies, needs_refresh, update_tendencies
from .playslike import adjusted_distance, plays_like
from .recommendations import get_analysis_factors, recommend
from .selector import alternative_clubs, select_by_distance
from .service import CaddyService, get_caddy_service
from .store import FileHistoricalStore, HistoricalStore, InMemoryHistoricalStore

__all__ = [
    "CaddyService",
    "FileHistoricalStore",
    "HistoricalStore",
    "InMemoryHistoricalStore",
    "STANDARD_CLUBS",
    "adjusted_distance",
    "alternative_clubs",
    "calculate_tendencies",
    "find_club",
    "get_analysis_factors",
    "get_caddy_service",
    "needs_refresh",
    "plays_like",
    "recommend",
    "select_by_distance",
    "update_tendencies",
]
