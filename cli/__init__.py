"""Command line surface of kbox."""
