"""Deployment declaration for Directus with PostgreSQL on Azure Container Apps."""

__version__ = "0.1.0"
