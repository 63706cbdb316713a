"""
Depository setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="depository",
    version="1.0.0",
    description="Depository — hierarchical document store on a filesystem",
    packages=find_packages(include=["depository", "depository.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "depository=depository.cli:main",
        ],
    },
    install_requires=[
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
)
