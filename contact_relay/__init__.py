"""Contact form to SMTP relay service"""

__version__ = "1.0.0"
