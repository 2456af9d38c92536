"""
Integration tests for docquery.

These tests verify that all components work together correctly:
filters compiled through a collection, executed on the memory store,
migrated in place and persisted through snapshots.
"""

import pytest


# Integration test markers
integration = pytest.mark.integration
requires_persistence = pytest.mark.requires_persistence
