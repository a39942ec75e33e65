#!/usr/bin/python3

from setuptools import setup, find_packages

TOOLS = [
    'cancel',
    'cupsaccept',
    'cupsctl',
    'cupstestppd',
    'cupsdisable',
    'cupsenable',
    'cupsreject',
    'lp',
    'lpadmin',
    'lpc',
    'lpinfo',
    'lpmove',
    'lpoptions',
    'lpq',
    'lpr',
    'lprm',
    'lpstat',
]

setup(
    name="cupsclient",
    version='0.1.0',
    description="Command line clients for CUPS print servers.",
    license="MIT",
    packages=find_packages(),
    python_requires='>=3.7',
    install_requires=['pycups', 'requests'],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            '%s = cupsclient.%s:main' % (tool, tool) for tool in TOOLS
            ],
        },
)
