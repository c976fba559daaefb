"""Terminal editor for preset configurations."""
