"""Core resolution logic: element trees, slots, composition and routing."""
