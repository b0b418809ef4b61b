"""GoGreen catalog and content admin API."""
