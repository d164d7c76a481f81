"""Read-only access to Kobo databases."""
