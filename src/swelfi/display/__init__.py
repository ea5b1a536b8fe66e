"""Rich rendering for Swelfi."""
