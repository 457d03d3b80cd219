"""FastAPI server, routes and caller identity for the Briefdesk runtime."""
