"""Idempotent batch provisioning of iteration and area trees."""

__version__ = "0.1.0"
