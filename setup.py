#!/usr/bin/env python

from setuptools import setup, find_packages

setup(
    name="quake_log_tools",
    version="1.0.0",
    description="Python tools for parsing Quake III Arena server logs into match and kill statistics",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    package_data={
        "config": ["profiles/*.example"],
    },
    python_requires=">=3.8",
    install_requires=[
        "requests>=2.25.0",
        "pandas>=1.0.0",
        "openpyxl>=3.0.0",
        "matplotlib>=3.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "quake-kill-tracker=quake_log_tools.tools.kill_tracker:main",
            "quake-download-log=quake_log_tools.log.log_downloader:main",
        ],
    },
)
