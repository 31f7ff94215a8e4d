"""
Homework Catalog

Ingests a batch archive of student homework submissions (one nested
archive per student), recovers student identity from the archive names,
and builds an in-memory catalog of their source files that can be
browsed next to a set of reference solutions.
"""

__version__ = "0.1.0"
__author__ = "Marco A. Escobar"
__email__ = "marcoaescobar@gmail.com"
