"""PlatformKit CLI command implementations."""
