"""
Vinted Alerts

A client-side alert-matching engine that polls marketplace listings,
matches them against user-defined alerts, keeps a deduplicated ledger
of matches and notifies about new ones.
"""

__version__ = "0.1.0"
__author__ = "Vinted Alerts Team"
