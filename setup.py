"""Setup script for Cloud Failover package"""

from setuptools import setup, find_packages
from pathlib import Path

# Read long description from README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""


def read_requirements(name):
    requirements_file = Path(__file__).parent / name
    if not requirements_file.exists():
        return []
    return [
        line.strip()
        for line in requirements_file.read_text().splitlines()
        if line.strip() and not line.startswith('#')
    ]


setup(
    name="cloud-failover",
    version="1.0.0",
    description="Cloud failover of BIG-IP addresses and routes",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Networking",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "test": read_requirements("requirements-dev.txt"),
    },
    entry_points={
        "console_scripts": [
            "cloud-failover=cloud_failover.cli:main",
        ],
    },
)
