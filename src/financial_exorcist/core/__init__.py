"""Stateful services of the Financial Exorcist: possession, rituals and auditing."""
