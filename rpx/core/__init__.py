"""Core module for the rpx application."""

from .types import APIResponse, FirestoreDocument

__all__ = ["FirestoreDocument", "APIResponse"]
