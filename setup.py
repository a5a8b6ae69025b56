"""
Setup script for the Sun Terrace package.
"""

from setuptools import setup

# Read the README file
def read_readme():
    with open("README.md", "r", encoding="utf-8") as fh:
        return fh.read()

# Read requirements
def read_requirements():
    with open("requirements.txt", "r", encoding="utf-8") as fh:
        return [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="sun-terrace",
    version="0.1.0",
    description="Find outdoor terraces in direct sunlight and predict when they lose or gain the sun",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    py_modules=[
        "config",
        "geo_projector",
        "solid_builder",
        "sun_ephemeris",
        "occlusion_model",
        "venue_registry",
        "exposure_predictor",
        "data_loaders",
        "exposure_service",
        "example_usage",
    ],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: GIS",
        "Topic :: Scientific/Engineering :: Astronomy",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "black>=21.0",
            "flake8>=3.8",
            "mypy>=0.800",
        ],
    },
    entry_points={
        "console_scripts": [
            "sun-terrace-demo=example_usage:main",
        ],
    },
    include_package_data=True,
    keywords="sun, shade, terrace, ephemeris, ray casting, gis, geospatial, python",
)
