"""Inventory service: stock rows, stock mutations and product.created consumption."""
