"""bazelcov — generate HTML coverage reports for Bazel projects."""

__version__ = "0.1.0"
