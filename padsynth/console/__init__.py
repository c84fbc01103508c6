"""CONSOLE — Output stage (peak limiting before encoding)."""
