"""Notification lifecycle engine for multi-tenant clinics."""

__version__ = "1.0.0"
