from factdesk.models.user import User
from factdesk.models.claim import Claim
from factdesk.models.suggestion import AISuggestion, AISuggestionRevision
from factdesk.models.verdict import Verdict
from factdesk.models.points import PointsLedgerEntry, UserPointsSummary
from factdesk.models.notification import NotificationWatermark

__all__ = [
    'User',
    'Claim',
    'AISuggestion', 'AISuggestionRevision',
    'Verdict',
    'PointsLedgerEntry', 'UserPointsSummary',
    'NotificationWatermark',
]
