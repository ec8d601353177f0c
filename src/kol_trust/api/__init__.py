"""FastAPI application for the trust-report service."""
