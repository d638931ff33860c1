"""Version of the shopgate package (PEP 440)."""

__version__ = "0.3.0"
