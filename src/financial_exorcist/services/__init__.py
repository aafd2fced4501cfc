"""Application services that wire the core together."""
