"""Exception hierarchy for Portwarden."""


class PortwardenError(Exception):
    """Base class for all Portwarden errors."""

    pass


class InvalidPortError(PortwardenError, ValueError):
    """Raised when a port is not an integer in 1-65535."""

    def __init__(self, port: object) -> None:
        self.port = port
        super().__init__(f"Invalid port number: {port}. Must be between 1 and 65535.")


class InvalidArgumentError(PortwardenError, ValueError):
    """Raised when an argument other than a port is rejected."""

    pass


class NotFoundError(PortwardenError, LookupError):
    """Raised when a named entity (e.g. a project) does not exist."""

    pass


class OSQueryError(PortwardenError, OSError):
    """Raised when the operating system cannot be queried for port owners.

    Distinct from an empty result: an empty list means nothing is bound,
    this error means we could not find out.
    """

    pass
