"""Configuration, errors, logging and identity helpers."""
