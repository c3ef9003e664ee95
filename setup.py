#!/usr/bin/env python3
"""
Setup configuration for Music-Uploader
Upload local JSON playlist definitions to an Apple Music library
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "click>=8.1.7",
    "pyyaml>=6.0.1",
    "tqdm>=4.66.1",
    "colorama>=0.4.6",
    "python-dotenv>=1.0.0",
    "aiohttp>=3.9.1",
    "asyncio-throttle>=1.0.2",
    "yarl>=1.9.0",
]

setup(
    name="music-uploader",
    version="0.3.0",
    author="Verryx-02",
    author_email="verryx_github.untaken971@passinbox.com",
    description="Upload local JSON playlist definitions to an Apple Music library",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/verryx-02/music-uploader",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
    ],
    python_requires=">=3.8",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-asyncio>=0.21.1",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "music-upload=music_uploader.main:cli",
        ],
    },
    keywords="apple music playlist upload library cli",
    project_urls={
        "Bug Reports": "https://github.com/verryx-02/music-uploader/issues",
        "Source": "https://github.com/verryx-02/music-uploader",
    },
)
