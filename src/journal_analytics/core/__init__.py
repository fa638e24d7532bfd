"""Core types: enums, errors, input models, tagged ratios and settings."""
