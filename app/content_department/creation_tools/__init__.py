"""Tools that call the generative-text service."""
