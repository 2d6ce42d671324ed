"""AuthFlow - OAuth2/OIDC redirect flow orchestration."""

__version__ = "0.1.0"
