"""Reliable byte-stream connections over UDP, with helpers and sample applications."""

__version__ = "1.0.0"