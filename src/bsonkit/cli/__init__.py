"""Command-line interface for bsonkit."""
