#!/usr/bin/env python3
"""
Graph NLP Platform - Package Setup

Package configuration for the Graph NLP Platform: text annotation
orchestration, pipeline management and the workflow task engine.

Author: Graph NLP Platform
Date: 2026
Version: 1.0.0
"""

from setuptools import setup, find_namespace_packages
from pathlib import Path

this_directory = Path(__file__).parent
readme = this_directory / "README.md"
long_description = readme.read_text(encoding="utf-8") if readme.exists() else ""

# Read requirements
def read_requirements(filename):
    """Read requirements from file, skipping blank lines and comments."""
    requirements_path = this_directory / filename
    if requirements_path.exists():
        lines = requirements_path.read_text().splitlines()
        return [line.strip() for line in lines if line.strip() and not line.startswith("#")]
    return []

install_requires = read_requirements("requirements.txt")
dev_requires = read_requirements("requirements-dev.txt")

setup(
   name="graph-nlp-platform",
   version="1.0.0",
   description="Text annotation orchestration and workflow task engine for graph NLP",
   long_description=long_description,
   long_description_content_type="text/markdown",
   author="Graph NLP Platform Team",

   # Package configuration
   packages=find_namespace_packages(include=[
       "config*", "domain*", "interfaces*", "infrastructure*",
       "application*", "plugins*", "tools*",
   ]),
   py_modules=["run"],
   python_requires=">=3.11",
   install_requires=install_requires,
   extras_require={
       "dev": dev_requires,
       "spacy": ["spacy>=3.7.0"],
       "all": dev_requires + ["spacy>=3.7.0"],
   },

   # Entry points
   entry_points={
       "console_scripts": [
           "nlpctl=tools.cli:main",
       ],
       "nlp_text_processors": [
           "spacy=infrastructure.nlp.processors:SpacyTextProcessor",
       ],
       "nlp_extensions": [
           "annotation_metrics=plugins.extensions.annotation_metrics:AnnotationMetricsExtension",
       ],
   },

   # Package metadata
   classifiers=[
       "Development Status :: 4 - Beta",
       "Intended Audience :: Developers",
       "Intended Audience :: Science/Research",
       "Operating System :: OS Independent",
       "Programming Language :: Python :: 3",
       "Programming Language :: Python :: 3.11",
       "Programming Language :: Python :: 3.12",
       "Topic :: Text Processing :: Linguistic",
       "Typing :: Typed",
   ],

   keywords=[
       "nlp", "annotation", "graph", "workflow", "pipeline",
       "sentiment-analysis", "text-processing", "ddd"
   ],

   zip_safe=False,
)
