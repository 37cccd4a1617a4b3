from .user.user import User
from .trips.trip_model import Trip
from .trips.trip_member import TripMember, TripRole
from .trips.trip_invite import Invitation, InviteStatus
from .activities.activity import Activity, ActivityCategory
from .activities.vote import Vote
