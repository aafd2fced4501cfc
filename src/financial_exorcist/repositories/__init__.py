"""Offering store interfaces and implementations."""
