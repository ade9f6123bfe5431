"""Sight-reading trainer mapping movable-do digits onto a six-string fretboard."""
