"""
Setup script for PlaneSeam.

Usage:
    pip install -e .           # Editable install
    pip install -e ".[dev]"    # With dev dependencies

The package is pure Python; numpy is used for input validation and the
line/plane helpers in planeseam.mathutils.
"""

from setuptools import setup, find_packages


setup(
    name='planeseam',
    version='0.1.0',
    description='Visible intersection seams between detected planar surfaces',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.8',
    install_requires=[
        'numpy',
    ],
    extras_require={
        'dev': ['pytest'],
        'test': ['pytest'],
    },
)
