#!/usr/bin/env python
"""
jsoncomposer Setup Script

Installs the jsoncomposer package, its console script and its dependencies.
"""

from setuptools import setup, find_packages
import os

# Read the long description from README
def read_long_description():
    here = os.path.abspath(os.path.dirname(__file__))
    readme_path = os.path.join(here, 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return ""

# Core dependencies
INSTALL_REQUIRES = [
    "pydantic>=2.0.0",
    "loguru>=0.7.0",
    "pyyaml>=6.0",
    "python-dotenv>=1.0.0",
    "rich>=13.0.0",
    "typer>=0.9.0",
    "fastapi>=0.100.0",
    "uvicorn>=0.23.0",
]

# Optional dependencies
EXTRAS_REQUIRE = {
    'dev': [
        "pytest>=7.4.0",
        "pytest-cov>=4.1.0",
        "httpx>=0.24.0",
        "networkx>=3.0",
        "black>=23.0.0",
        "isort>=5.12.0",
        "flake8>=6.0.0",
        "mypy>=1.5.0",
    ],
}

# Add 'all' option to install all extras
EXTRAS_REQUIRE['all'] = [dep for deps in EXTRAS_REQUIRE.values() for dep in deps]

setup(
    name="jsoncomposer",
    version="0.1.0",
    description="Concept graph discovery and composition for JSON-based Web APIs",
    long_description=read_long_description(),
    long_description_content_type="text/markdown",
    author="jsoncomposer Team",
    packages=find_packages(include=['jsoncomposer', 'jsoncomposer.*']),
    python_requires=">=3.9",
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
    entry_points={
        'console_scripts': [
            'jsoncomposer=jsoncomposer.cli:main',
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Software Development :: Libraries",
    ],
    keywords="json schema-discovery api-composition concept-graph gexf",
    license="MIT",
    include_package_data=True,
    zip_safe=False,
)
