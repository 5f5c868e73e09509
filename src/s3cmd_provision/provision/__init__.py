"""Provisioning contract and plugin lifecycle."""
