"""Notification fan-out service."""
