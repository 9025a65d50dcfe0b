"""Global constants for the meetup application."""

API_PREFIX = "/api/0.1"

# Collection names
USERS_COLLECTION = "users"
ITEMS_COLLECTION = "items"
GROUPS_COLLECTION = "groups"

# Request header carrying the caller's app instance ID
INSTANCE_ID_HEADER = "Instance-Id"

# Device group endpoints
FCM_GROUP_URL = "https://fcm.googleapis.com/fcm/notification"
INSTANCE_ID_URL = "https://iid.googleapis.com/iid/info/"

# Defaults for the messaging provider
DEFAULT_PROVIDER_TIMEOUT = 10.0
DEFAULT_VERIFY_MAX_ATTEMPTS = 5
DEFAULT_VERIFY_DEADLINE = 30.0

# Firestore retries a conflicting transaction this many times
DEFAULT_STORE_MAX_ATTEMPTS = 5

# Coordinate bounds
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

# Fields an item search may filter on, with the type used to parse them
ITEM_SEARCH_FIELDS = {
    "image": str,
    "people": int,
    "attendant": int,
    "latitude": float,
    "longitude": float,
}
