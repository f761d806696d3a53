"""Exception types shared by the stores and the outer surfaces."""


class DreamhighError(Exception):
    """Base class for dreamhigh errors."""


class BlobNotFound(DreamhighError):
    """A blob reference does not resolve to an existing file."""

    def __init__(self, reference: str):
        super().__init__(f"Blob not found: {reference}")
        self.reference = reference


class StoreFailure(DreamhighError):
    """A record or blob store operation failed; nothing was changed."""


class RecordNotFound(DreamhighError):
    """No record exists with the given id."""

    def __init__(self, kind: str, id: str):
        super().__init__(f"{kind} {id} not found")
        self.kind = kind
        self.id = id
