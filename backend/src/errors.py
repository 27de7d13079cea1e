"""Exception hierarchy shared by stores, providers and diagnostics."""

from typing import Any, Optional


class RagError(Exception):
    """Base exception for the toolkit."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for reporting."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class EmbeddingError(RagError):
    """Raised when an embedding provider returns an unusable response."""

    def __init__(self, message: str, provider: Optional[str] = None):
        details = {"provider": provider} if provider else {}
        super().__init__(message, code="EMBEDDING_ERROR", details=details)


class StoreError(RagError):
    """Raised by vector stores."""

    def __init__(self, message: str, collection: Optional[str] = None, code: str = "STORE_ERROR"):
        details = {"collection": collection} if collection else {}
        super().__init__(message, code=code, details=details)


class CollectionNotFoundError(StoreError):
    """Raised when writing to a collection that was never created."""

    def __init__(self, collection: str):
        super().__init__(
            f"Collection not found: {collection}",
            collection=collection,
            code="COLLECTION_NOT_FOUND",
        )


class UnsupportedStoreOperationError(RagError):
    """Raised when a store lacks a capability an operation needs."""

    def __init__(self, operation: str, capability: str, store_type: Optional[str] = None):
        message = f"{operation} requires a vector store with the '{capability}' capability"
        if store_type:
            message += f" ({store_type} does not provide it)"
        super().__init__(
            message,
            code="UNSUPPORTED_OPERATION",
            details={"operation": operation, "capability": capability},
        )
        self.operation = operation
        self.capability = capability
