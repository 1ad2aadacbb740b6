"""Logging setup and rejected-record log."""
