# blog_scout/crawler/__init__.py
"""HTTP layer: retrying fetcher, robots.txt and shared models."""
