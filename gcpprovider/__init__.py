"""Models, defaulting, decoding and validation for GCP provider cluster configuration."""

__version__ = "0.1.0"