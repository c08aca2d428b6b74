"""Routers for accounts, administration, the blog, summaries and preferences."""
