"""Bakery storefront: weekly menu ordering, custom-cake inquiries and back-office."""

__version__ = "1.0.0"
