"""Customer examples."""
