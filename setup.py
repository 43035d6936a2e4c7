#!/usr/bin/env python3
"""
Setup configuration for keychecker
Configured to work with the existing project structure
"""

from setuptools import setup, find_packages
import os
from pathlib import Path

# Read the full description
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding='utf-8') if (this_directory / "README.md").exists() else ""

# Read the version from __init__.py file
def get_version():
    """Get the version from __init__.py file"""
    version_file = os.path.join(os.path.dirname(__file__), 'keychecker', '__init__.py')
    try:
        with open(version_file, 'r', encoding='utf-8') as f:
            for line in f:
                if line.strip().startswith('__version__'):
                    return line.split('=')[1].strip().strip('"').strip("'")
    except FileNotFoundError:
        pass
    return "0.4.0"

# Essential required dependencies
REQUIRED = [
    "click>=8.0.0",          # CLI interface
    "aiohttp>=3.8.0",        # Asynchronous requests
    "pyyaml>=6.0",           # Configuration files
    "rich>=13.0.0",          # Banner, progress bar and summary table
    "toml>=0.10.2",          # ClewdR snippet output
]

# Optional dependencies
EXTRAS = {
    'dev': [
        "pytest>=7.0.0",
    ]
}

setup(
    # Basic package information
    name="keychecker",
    version=get_version(),
    description="Concurrent validator that sorts Gemini API keys into free, paid, invalid and rate-limited tiers",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # License and classifications
    license="MIT",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Utilities",
    ],
    keywords="gemini, api key, validation, asyncio, aiohttp",

    # Python requirements
    python_requires=">=3.8",

    # Packages and files
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,

    # Dependencies
    install_requires=REQUIRED,
    extras_require=EXTRAS,

    # Entry points (Console Scripts)
    entry_points={
        'console_scripts': [
            'keychecker=keychecker.main:main',
        ],
    },

    zip_safe=False,
    platforms=["any"],
)
