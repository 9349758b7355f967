"""Workspace scanning: manifest discovery, staleness checks and description loading."""
