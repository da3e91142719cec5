#!/usr/bin/env python3

# python setup.py sdist --format=zip,gztar

import sys
import importlib.util

from setuptools import setup, find_packages

MIN_PYTHON_VERSION = "3.8.0"
_min_python_version_tuple = tuple(map(int, (MIN_PYTHON_VERSION.split("."))))


if sys.version_info[:3] < _min_python_version_tuple:
    sys.exit("Error: etherseed requires Python version >= %s..." % MIN_PYTHON_VERSION)

with open('contrib/requirements/requirements.txt') as f:
    requirements = f.read().splitlines()

with open('contrib/requirements/requirements-crypto.txt') as f:
    requirements_crypto = f.read().splitlines()

with open('contrib/requirements/requirements-tests.txt') as f:
    requirements_tests = f.read().splitlines()

# load version.py without importing the package
version_spec = importlib.util.spec_from_file_location('version', 'etherseed/version.py')
version_module = version = importlib.util.module_from_spec(version_spec)
version_spec.loader.exec_module(version_module)

extras_require = {
    'crypto': requirements_crypto,
    'tests': requirements_tests,
}
extras_require['full'] = [pkg for sublist in
                          (extras_require['crypto'],)
                          for pkg in sublist]


setup(
    name="etherseed",
    version=version.ETHERSEED_VERSION,
    python_requires='>={}'.format(MIN_PYTHON_VERSION),
    install_requires=requirements,
    extras_require=extras_require,
    packages=(['etherseed',]
              + [('etherseed.'+pkg) for pkg in
                 find_packages('etherseed', exclude=["tests"])]),
    package_dir={
        'etherseed': 'etherseed'
    },
    package_data={
        'etherseed': ['wordlist/*.txt'],
    },
    description="BIP39/BIP44 seeds and encrypted keystores for Ethereum accounts",
    author="The etherseed developers",
    license="MIT Licence",
    long_description="""BIP39/BIP44 seeds and encrypted keystores for Ethereum accounts""",
)
