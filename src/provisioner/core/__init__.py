"""Core infrastructure shared by every orchestrator module."""
