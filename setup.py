"""
Setup script for incstats

Pure-Python package (src layout). Installs the ``incstats`` package and the
``incstats`` console script for the interactive streaming REPL.
"""

from pathlib import Path
from setuptools import setup, find_packages


# Read version from src/incstats/__init__.py
def get_version():
    version_file = Path("src/incstats/__init__.py")
    if version_file.exists():
        for line in version_file.read_text().splitlines():
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"').strip("'")
    return "0.1.0"


# Read long description from README
def get_long_description():
    readme = Path("README.md")
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


setup(
    name="incstats",
    version=get_version(),
    description="Incremental descriptive statistics with O(1) add/remove, exact GCD and empirical distributions",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "incstats = incstats.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
    zip_safe=True,
)
