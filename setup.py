"""
Installs mcmcstorage
"""

import re

from setuptools import find_packages, setup


# Get package information
def get_package_info():
    """
    Gets version information for the installation.
    """
    # Set up variables
    package_version = None

    # Open the file containing version info
    with open("mcmcstorage/__init__.py", "r", encoding="utf-8") as file:
        for line in file:
            # Check version
            if match_obj := re.match(r"__version__.+([0-9]+\.[0-9]+\.[0-9]+)", line):
                package_version = match_obj.group(1)

    # Checks on variables
    if package_version is None:
        raise IOError("Could not find information on version.")

    return package_version


# Run setup
setup(
    name="mcmcstorage",
    version=get_package_info(),
    description="Named, shaped, zero-copy access to cmdstan CSV sampler output.",
    license="MIT",
    python_requires=">=3.10",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=[
        "numpy",
        "typeguard>=4",
        "tqdm",
        "xarray",
        "h5netcdf[h5py]",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "mcmcstorage-describe=mcmcstorage.pipelines.describe_chains:main",
            "mcmcstorage-to-netcdf=mcmcstorage.pipelines.stan_csv_to_netcdf:main",
        ]
    },
)
