"""Cafeteria satisfaction survey service."""
