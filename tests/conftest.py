"""Shared test setup."""

from tests.mock_utils import MockFirestoreBuilder

MockFirestoreBuilder.patch_db_read()
