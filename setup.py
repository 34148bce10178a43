# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for the stof-dist package distribution client
"""

from setuptools import setup, find_packages

setup(
    name="stof-dist",
    version="1.0.0",
    description="Package registry client: install, publish and run packages remotely",
    author="Jason Cafarelli",
    package_dir={"": "src"},
    packages=find_packages("src", include=["stof_dist", "stof_dist.*"]),
    python_requires=">=3.11",
    install_requires=[
        "httpx>=0.25.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
        "aiofiles>=23.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "stof-dist=stof_dist.cli:main",
        ]
    },
)
