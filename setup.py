# setup.py
from setuptools import setup, find_packages

setup(
    name="blog_scout",
    version="0.1.0",
    description="Async article discovery and batch analysis for BlogScout",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "lxml>=5.0",
        "feedparser>=6.0",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.2",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "blog-scout=blog_scout.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
