"""Chain and venue collaborators."""
