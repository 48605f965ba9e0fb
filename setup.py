#!/usr/bin/env python
# -*- coding: utf-8 -*-

import codecs
from setuptools import setup, find_packages

# Parse the version from the main __init__.py
with open('ctrboot/__init__.py') as f:
    for line in f:
        if line.find("__version__") >= 0:
            version = line.split("=")[1].strip()
            version = version.strip('"')
            version = version.strip("'")
            continue


with codecs.open('README.rst', encoding='utf-8') as f:
    readme = f.read()

extra_reqs = {'tests': ['pytest'],
              'docs': ['sphinx',
                       'sphinx_rtd_theme',
                       'matplotlib',
                       'sphinx-gallery']}

setup(name='ctr-bootstrap',
      version=version,
      description=u"Average click-through rate estimators with bootstrap variance",
      long_description_content_type="text/x-rst",
      long_description=readme,
      keywords='ctr, advertising, campaigns, bootstrap, variance, estimation',
      license='EUPL-v1.2',
      classifiers=[
          'Programming Language :: Python :: 3.9',
          'Programming Language :: Python :: 3.10',
          'Programming Language :: Python :: 3.11',
      ],
      packages=find_packages(exclude=['tests', 'tests.*', 'docs']),
      install_requires=[
          'numpy',
          'pandas',
          'scipy'
      ],
      python_requires=">=3.9",
      extras_require=extra_reqs)
