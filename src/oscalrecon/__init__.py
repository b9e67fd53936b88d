"""OSCAL Recon - SSP reconciliation and sanitization engine."""

__version__ = "1.0.0"
