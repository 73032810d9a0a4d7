"""Colloquy multi-model discussion system."""
