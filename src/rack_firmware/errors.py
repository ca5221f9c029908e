"""Error taxonomy for rack firmware operations."""


class RackFirmwareError(Exception):
    """Base class for all rack firmware errors."""

    code: int = 500


class ValidationError(RackFirmwareError):
    """Malformed input rejected before any side effect."""

    code = 400


class NotFoundError(RackFirmwareError):
    """Referenced firmware config or rack does not exist."""

    code = 404


class PersistenceError(RackFirmwareError):
    """Repository write or transaction failure."""

    code = 409


class PreconditionError(RackFirmwareError):
    """Operation cannot start in the current state (e.g. firmware not available)."""

    code = 412


class TransportError(RackFirmwareError):
    """Network failure scoped to one file download or one fleet manager call."""

    code = 502
