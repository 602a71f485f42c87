"""Loaders that turn schedule files into chart input records."""
