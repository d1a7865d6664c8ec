# -*- coding: utf-8 -*-
from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()


requirements = ["lief>=0.14.0"]


setup(
    name='rdemangle',
    # note to self: always change this in config as well.
    version='0.3.1',
    description='A demangler for Rust symbol names, supporting the legacy and v0 mangling schemes.',
    long_description_content_type="text/markdown",
    long_description=long_description,
    url='https://github.com/danielplohmann/rdemangle',
    license="BSD 2-Clause",
    packages=find_packages(exclude=('tests', 'docs')),
    install_requires=requirements,
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: BSD License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Security",
        "Topic :: Software Development :: Disassemblers",
    ],
)
