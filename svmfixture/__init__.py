"""Fuzz fixtures for single-instruction SVM program tests: encoding, JSON, hashing and files."""

__version__ = "0.7.0"