"""dreamhigh - local job-application and résumé-version tracker."""

__version__ = "0.3.0"
