"""Shared console components."""
