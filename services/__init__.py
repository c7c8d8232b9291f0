"""Catalog and inventory microservices."""
