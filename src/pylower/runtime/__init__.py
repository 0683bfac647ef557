"""Support code copied into every generated program."""
