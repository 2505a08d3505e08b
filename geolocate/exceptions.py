class ProtocolError(Exception):
    """Raised when the location daemon sends a malformed or error report."""

    pass
