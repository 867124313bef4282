"""
Setup script for Concept Mapper
"""

from setuptools import setup, find_packages
import os

# Read the README file
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements
def read_requirements(filename):
    """Read requirements from file."""
    with open(filename, "r", encoding="utf-8") as f:
        return [
            line.strip()
            for line in f
            if line.strip()
            and not line.startswith("#")
            and not line.startswith("-r")
        ]

# Base requirements
install_requires = read_requirements("requirements.txt")

# Development requirements (optional)
dev_requires = []
if os.path.exists("requirements-dev.txt"):
    dev_requires = read_requirements("requirements-dev.txt")

setup(
    name="concept-mapper",
    version="1.0.0",
    description="Maps educational video transcript segments to NCERT textbook concepts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Topic :: Education",
    ],
    python_requires=">=3.9",
    install_requires=install_requires,
    extras_require={
        "dev": dev_requires,
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "httpx>=0.25.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "concept-mapper=concept_mapper.cli:main",
            "concept-mapper-server=concept_mapper.api.main:main",
        ],
    },
)
