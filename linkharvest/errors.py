"""
Exception types for the link harvester.
"""


class LinkHarvestError(Exception):
    """Base class for all link harvester errors."""


class ConfigError(LinkHarvestError):
    """Raised when the configuration file is missing or invalid."""


class LogSetupError(LinkHarvestError):
    """Raised when the diagnostic log sink cannot be opened."""


class ExportError(LinkHarvestError):
    """Raised when the final export cannot be written."""


class AggregatorStateError(LinkHarvestError):
    """Raised when the aggregator is used outside its crawl epoch."""


class VisitError(LinkHarvestError):
    """Raised when a URL cannot be scheduled for a visit."""
