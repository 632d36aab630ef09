"""Static prerendering and hydration pipeline for the help-center site."""

__version__ = "1.0.0"
