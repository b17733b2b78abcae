"""Background workers for periodic maintenance tasks."""
