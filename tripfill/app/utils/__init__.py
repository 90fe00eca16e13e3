"""Geometry and calendar utilities."""
