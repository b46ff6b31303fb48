"""certweb: configuration assembly and test selection for certsuite runs."""

__version__ = "0.1.0"
