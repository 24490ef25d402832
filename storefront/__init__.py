"""Storefront cart reconciliation and pricing service."""

__version__ = "1.0.0"
