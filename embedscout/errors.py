"""
Error taxonomy for embedscout.

Only MalformedInput, PageUnreachable and FetchError ever reach a caller of
the Engine. PluginExtractionError is recovered inside the runner and only
shows up in a debug trace. An empty link list is not an error.
"""


class EmbedScoutError(Exception):
    """Base exception for embedscout errors."""
    pass


class MalformedInput(EmbedScoutError):
    """Raised when the URI given to the pipeline is missing or unusable."""
    pass


class PageUnreachable(EmbedScoutError):
    """
    Raised when the target page does not exist or cannot be resolved.

    Covers DNS failures, refused connections and 404/410 responses. Callers
    report it as "not found".
    """

    def __init__(self, uri: str, reason: str = "Page not found"):
        self.uri = uri
        self.reason = reason
        super().__init__(f"{reason}: {uri}")


class FetchError(EmbedScoutError):
    """Raised for any other failure while fetching a page."""

    def __init__(self, uri: str, reason: str, status_code: int = 0):
        self.uri = uri
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {uri}: {reason}")


class PluginError(EmbedScoutError):
    """Raised when a plugin is misconfigured or registered at the wrong time."""
    pass


class PluginValidationError(PluginError):
    """Raised when plugin validation fails."""
    pass


class PluginExtractionError(EmbedScoutError):
    """A single plugin failed while extracting links."""

    def __init__(self, plugin_name: str, cause: Exception):
        self.plugin_name = plugin_name
        self.cause = cause
        super().__init__(f"Plugin {plugin_name} failed: {cause}")
