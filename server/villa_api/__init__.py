"""Villa booking API package."""
