"""Catalog, index and sync HTTP resources."""
