"""Configuration defaults and remote API constants."""

# .env handling
DEFAULT_ENV_FILE = ".env"
ENV_EXAMPLE_FILE = "env.example"
COOKIE_PLACEHOLDER = "your_cookie_string_here"

# Input/output defaults
DEFAULT_CSV_FILE = "spotify.csv"
DEFAULT_LOG_FILE = "output.log"
DEFAULT_CSV_DELIMITER = ";"
URL_COLUMN = "url"

# Remote API
DEFAULT_API_BASE_URL = "https://creators.spotify.com"
EPISODE_API_PATH = "/pod/api/proxy/v3/episodes/spotify:episode:{episode_id}"
OVERVIEW_PATH = EPISODE_API_PATH + "/overview"
UPDATE_PATH = EPISODE_API_PATH + "/update"
UPDATE_QUERY = {"isMumsCompatible": "true"}
DEFAULT_REQUEST_TIMEOUT = 30.0

# Pacing (seconds)
DEFAULT_DELAY_MIN = 0
DEFAULT_DELAY_MAX = 3
DEFAULT_VERIFY_DELAY = 1.0

# Diagnostics
ERROR_BODY_EXCERPT = 100
DESCRIPTION_EXCERPT = 100
DEBUG_RAW_EXCERPT = 500
