"""Packaging for configstore (src layout)."""

from setuptools import find_packages, setup

setup(
    name="configstore",
    version="0.1.0",
    description="JSON configuration file store with default merging and live reload",
    packages=find_packages("src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "click>=8.1",
        "inotify_simple>=1.3; sys_platform == 'linux'",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "configstore=configstore.cli:main",
        ],
    },
)
