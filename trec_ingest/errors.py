"""Exception types raised by the ingestion pipeline."""


class IngestError(Exception):
    pass


class ConfigError(IngestError):
    pass


class DiscoveryError(IngestError):
    pass


class IndexWriteError(IngestError):
    pass


class SchedulerConsistencyError(IngestError):
    def __init__(self, discovered: int, completed: int):
        self.discovered = discovered
        self.completed = completed
        super().__init__(
            f"totalFiles = {discovered} is not equal to completedTaskCount = {completed}"
        )


class TruncatedRecordError(OSError):
    """Stream ended inside a record payload."""
