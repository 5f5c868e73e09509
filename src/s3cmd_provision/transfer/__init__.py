"""Command building, process running and exit code handling."""
