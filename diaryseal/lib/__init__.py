"""Core library: crypto primitives, envelope codec, manifest and batch encryption."""
