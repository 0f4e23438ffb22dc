"""Abstract base classes of flowprep"""
