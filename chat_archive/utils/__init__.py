"""Utility modules for chat-archive."""
