"""Location simulation core for the Geranium spoofing utility."""
