#!/usr/bin/env python3
"""
Setup script for the sheetlens package

Installs both top-level packages (shared, sheetlens) so the service can be run
and tested from an editable install.
"""

from setuptools import setup, find_packages

setup(
    name="sheetlens",
    version="0.1.0",
    description="Spreadsheet ingestion, column analysis and chart recommendation service",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        # 🚀 Web Framework
        "fastapi>=0.104.1,<0.137",
        "uvicorn[standard]>=0.24.0",
        "httpx>=0.25.2",

        # 📋 Data Validation & Settings
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "python-dotenv>=1.0.0",

        # 🌐 File Handling
        "python-multipart>=0.0.6",

        # 📊 Data Processing
        "openpyxl>=3.1.2",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    package_data={
        "shared": ["py.typed"],
    },
)
