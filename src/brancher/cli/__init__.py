"""Command-line front end for Brancher."""
