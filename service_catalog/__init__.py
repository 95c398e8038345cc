"""Modpack catalog service package."""
