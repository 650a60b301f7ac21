"""File helpers for offline preprocessing."""
