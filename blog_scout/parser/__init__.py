# blog_scout/parser/__init__.py
"""Parsers for sitemaps, feeds and HTML sitemap pages."""
