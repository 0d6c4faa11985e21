"""Global constants for the volunteerhub application."""

# Firestore-related constants
FIRESTORE_BATCH_LIMIT = 500

# Collection names
USERS_COLLECTION = "users"
ORGANIZATIONS_COLLECTION = "organizations"
EVENTS_COLLECTION = "events"
CHAT_ROOMS_COLLECTION = "chatRooms"
MESSAGES_SUBCOLLECTION = "messages"
APPLICATIONS_SUBCOLLECTION = "applications"
NOTIFICATIONS_COLLECTION = "notifications"
ACTIVITIES_COLLECTION = "activities"
ADMIN_ACTIONS_COLLECTION = "adminActions"
ERROR_LOGS_COLLECTION = "errorLogs"

# Chat rooms
EVENT_CHAT_PREFIX = "event_"

# Storage
EVENT_IMAGE_PATH = "events/{event_id}/image"

# Retention and reporting windows (days)
MESSAGE_RETENTION_DAYS = 30
RECENT_REGISTRATION_DAYS = 7
RECENT_FOLLOWER_DAYS = 30

# Notifications
MENTION_PATTERN = r"@(\w+)"
MESSAGE_PREVIEW_LENGTH = 100

# Participant profile defaults
DEFAULT_DISPLAY_NAME = "Unknown User"
DEFAULT_PHOTO_URL = "https://via.placeholder.com/50"


def event_chat_room_id(event_id: str) -> str:
    """Return the ID of the companion chat room for an event."""
    return f"{EVENT_CHAT_PREFIX}{event_id}"
