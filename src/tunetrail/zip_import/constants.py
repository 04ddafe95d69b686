"""Constants for export archive extraction."""

# Lower-cased path fragments that mark a listening-history file
HISTORY_FILE_MARKERS = (
    "streaming_history_audio",
    "streaminghistory_music",
    "streaming_history",
    "streaminghistory",
)

# Video history files share the naming scheme but are never audio plays
EXCLUDED_FILE_MARKERS = ("video",)

JSON_SUFFIX = ".json"
ZIP_SUFFIX = ".zip"

# Fields to strip from raw records (privacy/security)
SENSITIVE_FIELDS = frozenset(
    {
        "ip_addr_decrypted",
        "ip_addr",
        "user_agent_decrypted",
        "user_agent",
        "username",
        "conn_country",
        "platform",
    }
)

# ijson prefixes for the two accepted top-level shapes
TOP_LEVEL_ARRAY_PREFIX = "item"
WRAPPED_ARRAY_KEY = "data"
WRAPPED_ARRAY_PREFIX = f"{WRAPPED_ARRAY_KEY}.item"

# Upper bound on raw records kept from one upload
DEFAULT_MAX_RECORDS = 5_000_000
