"""Storefront API.

E-commerce backend exposing authentication, product catalog and order
management endpoints over HTTP, backed by a relational database.
"""

__version__ = "0.1.0"
