"""Core data types for the rpx application."""

from typing import Any, Dict, Optional, TypedDict  # noqa: UP035


class _FirestoreDocumentBase(TypedDict):
    id: str
    createdAt: Any


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    updatedAt: Any
    version: int


class APIResponse(TypedDict, total=False):
    """Generic API response structure."""

    status: str
    message: str
    data: Optional[Dict[str, Any]]  # noqa: UP006
    error: str
    code: str
