"""Component extraction, rewriting, assembly and output for sfcforge."""
