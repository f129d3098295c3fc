"""
Packaging for portterm, an interactive serial terminal for the console.

Install with `pip install -e .[test]` and run the tests with `pytest`.
"""

from setuptools import setup

setup(
    name='portterm',
    version='0.1.0',
    description='Interactive console terminal for serial devices.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['portterm', 'portterm.conduit', 'portterm.config', 'portterm.connector', 'portterm.screens',
              'portterm.support'],
    package_data={'portterm.config': ['*.cfg']},
    python_requires='>=3.7',
    install_requires=[
        'pyserial>=3.4',
        'configobj>=5.0.8',
        'rich>=12.0',
        'click>=7.0',
    ],
    extras_require={
        'test': ['PyHamcrest', 'pytest', 'timeout-decorator'],
    },
    entry_points={
        'console_scripts': ['portterm=portterm.cli:main'],
    },
    zip_safe=False,
)
