"""Recipe parsing, image references, naming and process tracking for atomic distro images."""

__version__ = "0.9.20"