class PrintQueueError(Exception):
    """Base class for every error raised by the print queue."""


class NoWritableLocation(PrintQueueError):
    def __init__(self, attempted):
        self.attempted = list(attempted)
        tried = ", ".join(str(p) for p in self.attempted) or "none"
        super().__init__(f"No writable DB path found (tried: {tried})")


class InvalidState(PrintQueueError, ValueError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid state provided: {value!r}")


class InvalidInput(PrintQueueError, ValueError):
    pass


class StorageError(PrintQueueError):
    pass
