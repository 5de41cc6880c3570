"""Application exceptions."""


class StorageWriteError(RuntimeError):
    """Raised when a record could not be persisted."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Failed to save '{key}': {reason}")


class InferenceTransportError(RuntimeError):
    """Raised by inference adapters when the remote endpoint is unreachable."""

    def __init__(self, message: str, *, connection_failed: bool = False) -> None:
        self.connection_failed = connection_failed
        super().__init__(message)
