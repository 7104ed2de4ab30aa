"""GM and GLV token pricing for GMX v2 deployments."""

__version__ = "0.1.0"
