"""Command line surface for pagekeeper."""
