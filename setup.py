"""Setup script for the slash command package."""
from setuptools import setup, find_packages

setup(
    name="discord-slash-commands",
    version="1.0.0",
    description="Discord slash command registration and interaction dispatch",
    packages=find_packages(include=["slash_commands", "slash_commands.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31",
        "aiohttp>=3.9",
        "opentelemetry-api>=1.20",
        "opentelemetry-sdk>=1.20",
        "opentelemetry-exporter-gcp-trace>=1.6",
        "opentelemetry-instrumentation-requests>=0.41b0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "slash-commands-bot=slash_commands.main:main",
        ],
    },
)
