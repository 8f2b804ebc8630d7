"""Error taxonomy for the vocabulary store and its router."""


class WordBoxError(Exception):
    """Base class for every error the router turns into an error response."""
    pass


class StorageUnavailable(WordBoxError):
    """The storage engine could not be opened. Retryable."""
    pass


class MigrationFailed(WordBoxError):
    """A schema upgrade step failed; the store stays closed."""
    pass


class WriteFailed(WordBoxError):
    """A put/merge transaction aborted and was rolled back."""
    pass


class NotFound(WordBoxError):
    def __init__(self, word_id: str):
        self.word_id = word_id
        super().__init__(f"Word not found: {word_id}")


class LookupFailed(WordBoxError):
    """The lookup collaborator failed. Never propagated past the router."""
    pass


class StoreNotOpen(WordBoxError):
    pass


class InvalidField(WordBoxError):
    pass


class InvalidRequest(WordBoxError):
    """A router message is missing a required field or has the wrong type."""
    pass
