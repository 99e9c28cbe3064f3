# SPDX-License-Identifier: FSFAP
# Copyright (C) 2026 The Localscan Project Developers
#
# Copying and distribution of this file, with or without modification,
# are permitted in any medium without royalty provided the copyright
# notice and this notice are preserved.  This file is offered as-is,
# without any warranty.

import os
import re
from setuptools import setup, find_packages

# This directory
dir_setup = os.path.dirname(os.path.realpath(__file__))

with open(os.path.join(dir_setup, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

with open(os.path.join(dir_setup, "localscan", "__init__.py")) as f:
    __version__ = re.search(r'^__version__ = "(.*)"', f.read(), re.M).group(1)

install_requires = [
    "aiohttp>=3.8.0",
    "arrow>=1.1.1",
    "Pillow>=7.0.0",
    "platformdirs",
    "pymupdf>=1.21.0",
    'tomli>=2.0.1 ; python_version<"3.11"',
    "tomlkit>=0.11.4",
]

tests_require = [
    "pytest",
    "requests",
]


setup(
    name="localscan",
    version=__version__,
    description="Serve scans from a desktop scanning application over loopback HTTP",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="AGPLv3+",
    python_requires=">=3.9",
    packages=find_packages(include=["localscan", "localscan.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU Affero General Public License v3 or later (AGPLv3+)",
        "Development Status :: 3 - Alpha",
        "Operating System :: OS Independent",
        "Topic :: Multimedia :: Graphics :: Capture :: Scanners",
    ],
    entry_points={
        "console_scripts": [
            "localscan=localscan.__main__:main",
        ],
    },
    include_package_data=True,
    package_data={"localscan": ["localscan.toml"]},
    install_requires=install_requires,
    extras_require={"test": tests_require},
)
