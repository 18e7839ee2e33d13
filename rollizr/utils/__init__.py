"""Utilities: generation client, response extraction, company sources, logging."""
