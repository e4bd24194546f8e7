"""Persistence layer: document stores and their SQL schema."""
