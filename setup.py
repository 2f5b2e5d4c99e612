#! python
# coding: utf-8

from setuptools import setup
import os

setup(
    name='arcfeature',
    version='1.0',
    description="ArcGIS feature service query client",
    long_description="""Typed client for the query side of the ArcGIS REST API: describe feature services and their layers, list fields and fetch features with their geometries""",
    author="arcfeature contributors",
    platforms="any",
    license="Apache Software License",
    packages=['arcfeature'],
    python_requires='>=3.7',
    extras_require={
        'test': ['pytest'],
    },
    scripts=[
             os.path.join('cmdline', 'featurelayers.py'),
             os.path.join('cmdline', 'featurefields.py'),
             os.path.join('cmdline', 'featurequery.py'),
            ],
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Environment :: Web Environment',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python :: 3',
        'Topic :: Internet :: WWW/HTTP',
        'Topic :: Scientific/Engineering :: GIS',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Utilities'
    ]
)
