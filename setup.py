from pathlib import Path

from setuptools import find_packages, setup

ROOT = Path(__file__).parent
README = (ROOT / "README.md").read_text(encoding="utf-8") if (ROOT / "README.md").exists() else ""

setup(
    name="pyimgscatter",
    version="0.1.0",
    description="Row-partitioned scatter/gather image resizing and filtering across worker processes",
    long_description=README,
    long_description_content_type="text/markdown",
    author="pyimgscatter Contributors",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.19",
        "Pillow>=8.0.0",
        "opencv-python>=4.5.0",
    ],
    extras_require={
        "mpi": [
            "mpi4py>=3.1.0",
        ],
        "yaml": [
            "PyYAML>=6.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-xdist>=3.0.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
        "docs": [
            "sphinx>=5.0.0",
            "sphinx-rtd-theme>=1.2.0",
        ],
        "all": [
            "pyimgscatter[mpi,yaml,dev,docs]",
        ],
    },
    include_package_data=True,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics",
        "Topic :: System :: Distributed Computing",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords=[
        "image-processing",
        "mpi",
        "scatter-gather",
        "parallel",
        "resize",
    ],
    entry_points={
        "console_scripts": [
            "pyimgscatter=pyimgscatter.cli:main",
        ],
    },
)
