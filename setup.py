"""
Setup script for the MAC address resolver.

Usage:
    pip install .
    pip install -e ".[test]"

Installs the ``macresolver`` command.
"""
from setuptools import setup

setup(
    name='mac-address-resolver',
    version='1.0.0',
    description='Resolve MAC addresses to IP addresses and back from the neighbor table',
    python_requires='>=3.8',
    packages=[
        # Our packages
        'config',
        'resolver',
        'neighbor',
        'app',
    ],
    install_requires=[
        'psutil>=5.9',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-cov>=4.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'macresolver=app.cli:main',
        ],
    },
)
