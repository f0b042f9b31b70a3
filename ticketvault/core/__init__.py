"""Configuration and logging for the ticketvault service."""
