"""Catalog service: product documents, read-through cache and product.created publication."""
