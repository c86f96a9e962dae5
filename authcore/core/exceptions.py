"""Custom exception classes for the authorization core"""

from typing import Optional, Dict, Any


class AuthCoreException(Exception):
    """Base exception for all authorization core errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# Argument Errors
class PreconditionError(AuthCoreException):
    """Invalid argument supplied to a store operation"""
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


# Serialization Errors
class SerializationError(AuthCoreException):
    """Claim or metadata text could not be parsed or produced"""
    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(
            message or f"Unable to serialize field '{field}'",
            status_code=400,
            details={"field": field}
        )


# Integrity Errors
class DataIntegrityError(AuthCoreException):
    """Stored data violates a store-level invariant"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=500, details=details)


class UnresolvedClientError(DataIntegrityError):
    """Authorization references a client that no longer exists"""
    def __init__(self, registered_client_id: str):
        self.registered_client_id = registered_client_id
        super().__init__(
            f"The registered client with id '{registered_client_id}' was not found in the client directory",
            details={"registered_client_id": registered_client_id}
        )


class AmbiguousTokenError(DataIntegrityError):
    """Token value resolved to more than one authorization"""
    def __init__(self, authorization_ids: list):
        super().__init__(
            "Token value matches more than one authorization",
            details={"authorization_ids": authorization_ids}
        )
