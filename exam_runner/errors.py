"""Error taxonomy for the exam session core."""


class ExamError(Exception):
    """Base class for session errors."""


class LoadFailure(ExamError):
    """Question set, attempt or answers could not be fetched (or the attempt could not be created)."""


class PersistenceWriteFailure(ExamError):
    """An answer upsert or attempt finalize was rejected by the store."""
