"""Concrete workflows built on the TaskRunner."""
