#!/usr/bin/env python3
# setup.py: install the plugin compatibility checker
#
# Install:
#   pip install -e .            (runtime)
#   pip install -e ".[test]"    (with pytest)
#
# Run:
#   plugin-compat-check --ref main
#   python main.py list

from setuptools import setup, find_packages

# Use README.md as the long description
try:
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()
except FileNotFoundError:
    long_description = "Build plugin repositories against a branch and report compatibility"

setup(
    name="plugin-compat-check",
    version="1.0.0",
    description="Compatibility-matrix checker for plugin repositories",
    long_description=long_description,
    long_description_content_type="text/markdown",
    py_modules=["main"],
    packages=find_packages("src"),
    package_dir={"": "src"},
    package_data={"plugin_compat": ["data/*.json"]},
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "colorama>=0.4.6",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "plugin-compat-check=main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
        "Topic :: Software Development :: Version Control :: Git",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
