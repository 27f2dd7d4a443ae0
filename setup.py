# pylint: disable=missing-module-docstring
from pathlib import Path

from setuptools import setup, find_packages

with open("requirements.in", encoding="utf-8") as f:
    requirements = f.read().splitlines()

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="factoryqueue",
    version="1.0.0",
    description="factoryqueue fetches pages of items from a source and processes them one by one "
    "with bounded concurrency and a throttled backlog.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: AsyncIO",
    ],
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=["setuptools"] + requirements,
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "factoryqueue = factoryqueue.run_factoryqueue:cli",
        ]
    },
)
