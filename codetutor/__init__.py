"""Explain-it-back validation and stuck nudges for the coding tutor."""
