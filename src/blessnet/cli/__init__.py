"""blessnet command-line interface."""
