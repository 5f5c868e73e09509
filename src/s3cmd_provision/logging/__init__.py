"""Operation record loggers."""
