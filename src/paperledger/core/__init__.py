"""Core utilities: exceptions, time and number helpers."""
