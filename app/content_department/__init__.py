"""Content generation: transcript refinement, article composition and the request pipeline."""
