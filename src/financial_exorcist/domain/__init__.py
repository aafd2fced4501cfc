"""Domain layer for the Financial Exorcist.

Contains the value records, the demon registry and the pure scoring and
rule-evaluation functions. This layer has no dependencies on state or storage.
"""
