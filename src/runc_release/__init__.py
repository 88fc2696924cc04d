"""Release tooling for building and signing runc release artifacts."""

__version__ = "0.1.0"
