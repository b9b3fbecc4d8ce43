"""Textual front-end for the render engine."""
