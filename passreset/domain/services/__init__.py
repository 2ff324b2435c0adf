"""Domain services for credential recovery."""
