"""Command-line entry points for mcmcstorage."""
