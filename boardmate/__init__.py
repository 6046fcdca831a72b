"""Boardmate - AI assistant for a personal task board."""
