class PlainTextDecodeError(Exception):
    """Raised when textual content cannot be decoded with any candidate charset."""
