"""SQLAlchemy models for the marketplace backend."""

from app.models.user import User, UserStatus  # noqa: F401
from app.models.profile import Profile  # noqa: F401
from app.models.driver import Driver  # noqa: F401
from app.models.vehicle import Vehicle  # noqa: F401
from app.models.booking import Booking, BookingStatus  # noqa: F401
from app.models.quote import Quote, QuoteStatus  # noqa: F401
from app.models.conversation import Conversation, ConversationParticipant, Message  # noqa: F401
from app.models.notification import Notification, NotificationType  # noqa: F401
from app.models.review import Review  # noqa: F401
