#!/usr/bin/env python3
"""
Setup configuration for yt-play
Cache and play YouTube / YouTube Music playlists with yt-dlp and mpv
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "yt-dlp>=2024.8.6",
    "click>=8.1.7",
    "rich-click>=1.8.0",
    "rich>=13.7.0",
    "tqdm>=4.66.1",
    "pyyaml>=6.0.1",
]

setup(
    name="yt-play",
    version="0.1.0",
    author="yt-play Team",
    description="Cache YouTube and YouTube Music playlists locally and play them with mpv",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio :: Players",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
        ],
    },
    entry_points={
        "console_scripts": [
            "yt-play=yt_play.cli:main",
        ],
    },
    keywords="youtube music playlist mpv yt-dlp cache cli",
)
