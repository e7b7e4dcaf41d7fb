#!/usr/bin/env python3
"""
Setup script for the lanchat client engine
"""

from setuptools import setup, find_namespace_packages

setup(
    name="lanchat",
    version="0.1.0",
    description="Polling client for a shared append-only LAN chat log",
    packages=find_namespace_packages(include=["client", "client.*", "shared", "shared.*", "server", "server.*"]),
    install_requires=[
        "aiohttp>=3.9,<4",
        "click==8.1.7",
        "typer==0.12.3",
        "rich==13.9.2",
        "aioconsole==0.8.1",
        "PyYAML>=6.0.1",
    ],
    extras_require={
        "test": [
            "pytest==8.4.2",
            "pytest-asyncio==1.2.0",
        ],
    },
    python_requires=">=3.10",
    entry_points={
        'console_scripts': [
            'lanchat=client.lanchat_cli:main',
            'lanchat-server=server.log_server:main',
        ],
    },
)
