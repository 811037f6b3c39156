"""Tk-facing glue for the canvas surface."""
