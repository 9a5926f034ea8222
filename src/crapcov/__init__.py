"""crapcov - CRAP risk scores from complexity and measured test coverage."""

__version__ = "0.1.0"
