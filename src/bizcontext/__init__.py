"""bizcontext - business context interpretation and budgeted context selection."""

__version__ = "0.1.0"
