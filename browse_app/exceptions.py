class NotFound(Exception):
    """Raised for a missing repository, revision, path or a path of the wrong kind."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
