class VCRError(Exception):
    """Base class for errors raised by vcr_transport"""


class NoMatchingInteractionError(VCRError):
    """
    Raised in replay mode (and never in auto mode) when the cassette holds no interaction
    matching the request. No network call is attempted.
    """

    def __init__(self, method: str, uri: str, cassette_name: str | None = None):
        self.method = method
        self.uri = uri
        self.cassette_name = cassette_name
        message = f"No interaction found for request {method} {uri}"
        if cassette_name:
            message += f" in cassette '{cassette_name}'"
        super().__init__(message)


class PersistenceError(VCRError):
    """
    Wraps a failure to save a recorded interaction.
    This is reported alongside the real response rather than raised.
    """

    def __init__(self, cassette_name: str, cause: Exception):
        self.cassette_name = cassette_name
        self.cause = cause
        super().__init__(f"Failed to save interaction to cassette '{cassette_name}': {cause}")
