#!/usr/bin/env python3
"""
Setup script for the debug hook
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="caller-debug-hook",
    version="1.0.0",
    description="structlog processor that adds caller function, source and version fields",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Logging",
    ],
    python_requires=">=3.11",
    install_requires=[
        "structlog>=23.1",
        "pydantic>=2.0",
        "click>=8.0",
        "rich>=13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "debug-hook=debug_hook.cli:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
