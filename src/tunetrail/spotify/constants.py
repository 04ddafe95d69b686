"""Spotify Web API URLs and retry defaults."""

SPOTIFY_API_BASE = "https://api.spotify.com/v1"

RECENTLY_PLAYED_URL = f"{SPOTIFY_API_BASE}/me/player/recently-played"
ME_URL = f"{SPOTIFY_API_BASE}/me"

# The recently-played endpoint caps page size at 50
RECENTLY_PLAYED_PAGE_LIMIT = 50

# Retry defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds
