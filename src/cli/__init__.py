"""quotesync command line interface."""
