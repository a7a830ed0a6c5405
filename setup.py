"""
Setup script for decktape-service project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="decktape-service",
    version="0.1.0",
    packages=find_packages(include=["decktape_service", "decktape_service.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "pydantic>=2",
        "pydantic-settings",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "decktape-service=decktape_service.__main__:main",
        ],
    },
)
