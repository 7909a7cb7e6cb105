"""Shared infrastructure for kbox: configuration, logging and runtime context."""
