"""Wine journal backend: tasting entries shared through a friendship graph."""
