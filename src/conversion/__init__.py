"""Default collaborators: package conversion, project writing and Tuist dependency validation."""
