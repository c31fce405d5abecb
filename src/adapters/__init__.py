"""Adapters package for octobell."""
