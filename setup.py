"""
Setup script for the competence-file editor core.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_namespace_packages

setup(
    name="competence-editor",
    version="0.1.0",
    packages=find_namespace_packages(include=["src", "src.*"]),
    python_requires=">=3.11",
    install_requires=[
        "python-dotenv>=1.0",
        "beautifulsoup4>=4.12",
        "httpx>=0.27",
        "pydantic>=2.5",
        "tenacity>=8.2",
        "python-docx>=1.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
