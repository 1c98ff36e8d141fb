"""Plinko Fair runtime configuration."""
