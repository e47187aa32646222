"""Domain error taxonomy and translation of store failures."""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import exc as sa_exc


class TanLinkError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TanLinkError):
    """Malformed input: bad handle format, empty URL, reorder set mismatch."""

    status_code = 400


class ConflictError(TanLinkError):
    """A unique resource (handle, email) is already held by someone else."""

    status_code = 409


class NotFoundError(TanLinkError):
    """Referenced profile, link or handle does not exist."""

    status_code = 404


class TransientStoreError(TanLinkError):
    """The backing store is momentarily unavailable."""

    status_code = 503


class OrderIntegrityError(TanLinkError):
    """Link order values are not exactly {0..N-1}.

    Internal only. Recovery is a full recompute of the profile's orders.
    """


# Transport-level failures; logical errors such as constraint violations
# are not in this list.
TRANSIENT_DB_ERRORS: tuple[type[Exception], ...] = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
)


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy transport errors as TransientStoreError."""
    try:
        yield
    except TRANSIENT_DB_ERRORS as e:
        raise TransientStoreError(f"Store unavailable during {operation}: {e}") from e
