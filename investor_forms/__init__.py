"""Investor Forms Service: form sessions for creating and updating investor profiles."""
