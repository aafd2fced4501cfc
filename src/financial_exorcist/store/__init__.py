"""Append-only storage for audit events."""
