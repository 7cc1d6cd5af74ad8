"""
Setup script for progress-core.

progress-core is the adaptive assessment and gamification core of the
course-delivery platform. It owns the rules that turn answer events into:

1. A proficiency estimate (diagnostic and simulated-exam scoring)
2. An experience-point economy with levels, streaks and daily goals
3. One-time achievements and the error notebook review lifecycle

The 'progress' command is a terminal front-end for operating and inspecting
the core against its database.
"""

from setuptools import find_packages, setup

setup(
    name="progress-core",
    version="1.0.0",
    description="Adaptive assessment and gamification core for course delivery",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    package_data={"progress_core.gamification": ["achievements.yaml"]},
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "pyyaml>=6.0",
        # Time zones (zoneinfo database on platforms without one)
        "tzdata>=2023.3",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "progress=progress_core.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="gamification xp streak achievements assessment education",
)
