"""Command line interface for s3deploy."""
