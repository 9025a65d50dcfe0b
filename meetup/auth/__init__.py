"""Caller identification for API routes."""
