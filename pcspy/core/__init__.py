"""Core building blocks: API transport, upload subsystem, downloads and models."""
