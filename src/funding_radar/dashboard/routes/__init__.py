"""Route modules for the JSON host."""
