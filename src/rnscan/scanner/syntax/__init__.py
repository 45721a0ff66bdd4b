"""Parsed representations of JavaScript/TypeScript and JSON sources."""
