"""Data Phantom API access."""

from .phantom_client import PhantomClient
from .exceptions import (
    PhantomApiError,
    MissingCredentialError,
    InvalidIdentifierError,
    NotFoundError,
    TransientApiError,
    ServerError,
    MappingValidationError,
)

__all__ = [
    "PhantomClient",
    "PhantomApiError",
    "MissingCredentialError",
    "InvalidIdentifierError",
    "NotFoundError",
    "TransientApiError",
    "ServerError",
    "MappingValidationError",
]
