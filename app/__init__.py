"""Rail cargo stream web application."""
