"""Command line interface for wtmp-history."""
