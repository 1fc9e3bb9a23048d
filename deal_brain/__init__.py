"""Deal brain: extraction of financial-deal parameters from document text."""
