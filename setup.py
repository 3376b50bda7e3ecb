"""
Setup configuration for Game Backlog Tracker.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="game-backlog-tracker",
    version="0.1.0",
    author="Game Backlog Tracker Team",
    description="Session lifecycle client for a Supabase-backed video game backlog",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.8",
    install_requires=[
        "requests>=2.25.0",
        "google-auth>=2.0.0",
        "APScheduler>=3.9.0,<4",
        "Flask>=2.0.0",
        "flask-cors>=3.0.10",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "hypothesis>=6.0.0",
            "black>=22.0.0",
            "flake8>=4.0.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "game-backlog=game_backlog_tracker.main:main",
            "game-backlog-web=game_backlog_tracker.web.run:main",
        ],
    },
)
