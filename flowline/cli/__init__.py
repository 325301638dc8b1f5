"""Flowline command line interface."""
