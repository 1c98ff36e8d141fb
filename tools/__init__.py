"""Command line and Monte Carlo tooling around the fair engine."""
