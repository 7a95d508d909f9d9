"""Core building blocks: configuration and execution."""
