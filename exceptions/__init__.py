"""Briefdesk exception hierarchy."""
