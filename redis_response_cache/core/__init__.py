"""Core building blocks: configuration, logging and exceptions."""
