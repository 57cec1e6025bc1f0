"""sitepub command-line interface."""
