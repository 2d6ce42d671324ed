"""Web interface for the AuthFlow demo client."""
