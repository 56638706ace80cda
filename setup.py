"""
Brightsync - Push SIS course offerings into Brightspace

Installation:
    pip install -e .

This installs the 'brightsync' command globally in your environment.
"""

from setuptools import setup, find_packages
import os

# Read README for long description
long_description = ''
if os.path.exists('README.md'):
    with open('README.md', 'r', encoding='utf-8') as f:
        long_description = f.read()

setup(
    name='brightsync',
    version='1.0.0',
    description='Push SIS course offerings into the Brightspace org structure',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='Dale Chapman',
    author_email='',
    license='MIT',

    # Find all packages (brightsync/ and its tests)
    packages=find_packages(exclude=['tests', 'tests.*', 'docs']),

    python_requires='>=3.9',

    # Dependencies
    install_requires=[
        'click>=8.0',
        'PyYAML>=6.0',
        'requests>=2.28',
    ],

    # Optional dependencies
    extras_require={
        'dev': [
            'pytest>=7.4',
            'pytest-cov>=4.1',
            'pytest-mock>=3.11',
            'requests-mock>=1.11',
        ],
    },

    # CLI entry point - this creates the 'brightsync' command
    entry_points={
        'console_scripts': [
            'brightsync=brightsync.cli:cli',
        ],
    },

    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Education',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Education',
    ],

    keywords='brightspace d2l lms sis oauth2 course offering',
)
