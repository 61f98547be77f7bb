"""OpenNebula inventory reporting and VM placement checks."""

__version__ = "0.3.0"
