"""AdvisorFlow — compliance-gated content workflow engine."""

__version__ = "0.1.0"
