"""
Constants for embedscout.

Relation vocabulary, MIME types and defaults shared by the plugins,
the aggregator and the formatters. Network defaults are also available
via the config system.
"""

# Relation tags: semantic role of a link
REL_PLAYER = "player"
REL_IMAGE = "image"
REL_THUMBNAIL = "thumbnail"
REL_READER = "reader"
REL_APP = "app"
REL_SURVEY = "survey"
REL_FILE = "file"
REL_ICON = "icon"
REL_LOGO = "logo"
REL_ALTERNATE = "alternate"
REL_HTML5 = "html5"

# Relation tags: provenance markers
REL_OG = "og"
REL_TWITTER = "twitter"
REL_OEMBED = "oembed"

# Grouping order for grouped results. A link lands in every group it tags into.
REL_GROUPS = [
    REL_APP,
    REL_PLAYER,
    REL_SURVEY,
    REL_IMAGE,
    REL_READER,
    REL_THUMBNAIL,
    REL_LOGO,
    REL_ICON,
    REL_FILE,
    REL_ALTERNATE,
    REL_OG,
    REL_TWITTER,
    REL_OEMBED,
]
OTHER_GROUP = "other"

# MIME types
TYPE_HTML = "text/html"
TYPE_JPEG = "image/jpeg"
TYPE_IMAGE = "image"
TYPE_MP4 = "video/mp4"
TYPE_ICON = "image/icon"
TYPE_JSON_OEMBED = "application/json+oembed"

DEFAULT_LINK_TYPE = TYPE_HTML

# oEmbed record types
OEMBED_VERSION = "1.0"
OEMBED_VIDEO = "video"
OEMBED_RICH = "rich"
OEMBED_PHOTO = "photo"
OEMBED_LINK = "link"

# Network timeouts (in seconds)
DEFAULT_REQUEST_TIMEOUT = 10
OEMBED_REQUEST_TIMEOUT = 5

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; embedscout/0.3; +https://github.com/embedscout/embedscout)"

# Plugin evaluation
DEFAULT_MAX_WORKERS = 0  # 0 evaluates plugins sequentially

# Limits
MAX_URL_LENGTH = 2048
