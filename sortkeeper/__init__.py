"""YAML file workflows, condition checks, a directory watcher and shared file types."""

__version__ = "0.1.0"