"""
Setup configuration for pretrial-equity
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the contents of README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

# Read version from package
version = {}
with open("src/pretrial_equity/_version.py") as f:
    exec(f.read(), version)

setup(
    name="pretrial-equity",
    version=version["__version__"],
    description="Pretrial release FTA modelling with equity comparison against judge decisions",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Package configuration
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,

    # Python version requirement
    python_requires=">=3.9,<4.0",

    # Core dependencies
    install_requires=[
        "pandas>=1.5",
        "numpy>=1.23",
        "scikit-learn>=1.2",
        "joblib>=1.2",
        "lightgbm>=4.0",
        "openpyxl>=3.1",
        "typer>=0.9",
        "pydantic>=1.10",
        "pyreadstat>=1.2",
        "psutil>=5.9",
    ],

    # Optional dependencies
    extras_require={
        "dev": [
            "pytest>=7.4",
            "pytest-cov>=4.1",
        ],
    },

    # CLI entry points
    entry_points={
        "console_scripts": [
            "pretrial-equity=pretrial_equity.cli:main",
        ],
    },

    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    keywords=[
        "pretrial",
        "failure-to-appear",
        "algorithmic-fairness",
        "lightgbm",
        "machine-learning",
    ],
)
