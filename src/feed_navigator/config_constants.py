"""Configuration constants for feed_navigator.

All constants are re-exported from config.py for convenience.
"""

# General defaults
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_TIMEOUT_SECONDS = 30
MIN_TIMEOUT_SECONDS = 1
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Request disguises
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/121.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT = "application/rss+xml, application/xml, text/xml, */*"
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"
MOBILE_USER_AGENT = "vChannel/2.4 (iPhone; iOS 15.0; Scale/3.00)"
MOBILE_ACCEPT = "*/*, application/xml"

# Referers known to be accepted by the blocking provider
DEFAULT_REFERER = "https://allrss.se/"
ALTERNATE_REFERER = "https://allrss.se/dramas/"
INSECURE_REFERER = "http://allrss.se/"
DEFAULT_BLOCKING_HOSTS = ("allrss.se",)

# Relay fallback
DEFAULT_RELAY_URL_TEMPLATE = "https://api.allorigins.win/raw?url={url}"
DEFAULT_RELAY_MIN_BODY_LENGTH = 50

# Served when every strategy ended in 204
PLACEHOLDER_FEED_XML = (
    '<rss version="2.0"><channel><title>Empty Content (Blocked)</title></channel></rss>'
)

# Folder classification markers
DEFAULT_FOLDER_MIME_MARKERS = ("xml", "rss")
DEFAULT_FOLDER_URL_MARKERS = (
    ".xml",
    "/rss",
    "?channel=",
    "?subchannel=",
    "?film=",
    "?show=",
    "?ep=",
    "?mirror=",
    "?xml=",
)
UNTITLED_ITEM_TITLE = "Untitled"

# Parser limits
MAX_ITEMS_LOOKUP_DEPTH = 3

# Navigation defaults
DEFAULT_ROOT_FEED_URL = "https://rss.app/feeds/8O3ywpMHwZGfCIYy.xml"
DEFAULT_ROOT_TITLE = "Asian Channel"

# Endpoint server defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
