# setup.py
from setuptools import setup, find_packages

setup(
    name="clip_scout",
    version="0.1.0",
    description="Asynchronous product and video-widget crawler ClipScout",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=[
        "aiohttp>=3.9",
        "lxml>=5.0",
        "playwright>=1.40",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.1",
        "psutil>=5.9",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "clip-scout=clip_scout.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
