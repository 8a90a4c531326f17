"""Shared helpers: filesystem access and logging set-up."""
