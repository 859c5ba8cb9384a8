"""Room rental marketplace API."""
