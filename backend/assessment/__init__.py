"""Competency assessment engine: scoring, question assembly and DIF analysis."""
