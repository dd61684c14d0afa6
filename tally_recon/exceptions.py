# tally_recon/exceptions.py


class ReconEngineError(Exception):
    """Base error for caller-facing engine failures."""


class InvalidCollectionError(ReconEngineError, TypeError):
    """A row collection or annexure sheet has the wrong shape."""

    def __init__(self, name, value):
        self.name = name
        super().__init__(
            f"{name} must be a list of row mappings, got {type(value).__name__}"
        )
