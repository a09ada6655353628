"""Identifier algebra, reference resolution and search value objects."""
