from models.User import User
from models.Trip import Trip, TripStatus
from models.TripMember import TripMember, MemberRole
from models.AvailabilityRange import AvailabilityRange
from models.DateVotingSession import DateVotingSession, VotingStatus
from models.BudgetVote import BudgetVote, BudgetCategory
from models.LocationVote import LocationVote
from models.Notification import Notification, NotificationType

__all__ = [
    "User",
    "Trip",
    "TripStatus",
    "TripMember",
    "MemberRole",
    "AvailabilityRange",
    "DateVotingSession",
    "VotingStatus",
    "BudgetVote",
    "BudgetCategory",
    "LocationVote",
    "Notification",
    "NotificationType",
]
