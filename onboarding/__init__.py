"""Cloud onboarding (CCE) client."""

__version__ = "0.1.0"
