"""Utilities shared by the catalog and inventory services."""
