# Business logic services
from .location_service import LocationService
from .race_service import RaceService
from .notification_service import NotificationService
from .nomination_service import NominationService
from .candidacy_service import CandidacyService
from .voting_service import VotingService
from .convention_service import ConventionService
from .websocket_service import WebSocketManager

__all__ = [
    "LocationService", "RaceService", "NotificationService", "NominationService",
    "CandidacyService", "VotingService", "ConventionService", "WebSocketManager",
]
