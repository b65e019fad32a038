"""Storefront wishlist backend served behind the Shopify app proxy."""

__version__ = "0.1.0"
