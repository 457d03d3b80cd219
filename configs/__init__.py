"""Configuration for Briefdesk (environment variables + .env)."""
