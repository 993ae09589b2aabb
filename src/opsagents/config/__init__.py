"""User configuration locations."""
