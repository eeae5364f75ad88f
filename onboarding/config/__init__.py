"""Configuration module for the cloud onboarding client."""
from .settings import OnboardingConfig, load_settings

__all__ = ["OnboardingConfig", "load_settings"]
