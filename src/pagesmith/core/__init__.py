"""Request models, logo fetching and the error hierarchy."""
