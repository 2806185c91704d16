"""Stream versus memory-mapped file reading benchmark."""

__version__ = "0.1.0"
