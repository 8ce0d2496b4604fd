"""Study Hub: offline-first study library with reading progress and AI study tools."""

__version__ = "0.1.0"
