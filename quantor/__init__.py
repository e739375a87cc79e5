"""
Quantor - Finance Client Package

Client-side data access for the Quantor personal/business finance API:
dashboard, transactions, categories, budgets, reports and the AI assistant.

DESIGN PRINCIPLES:
1. No view talks to the network directly - everything goes through the
   Data-Access Layer
2. Reads are cached, writes are never retried
3. Every failure ends in exactly one user-visible notification
4. An expired session always ends at the login page, never in a retry loop
5. Side effects (navigation, notifications, clock) are injected
"""

__version__ = "1.0.0"
__author__ = "Quantor Team"
