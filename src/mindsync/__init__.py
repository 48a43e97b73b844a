"""
MindSync - Mental-Wellness Chat Backend

This package provides the backend services for the MindSync platform:
user accounts, token authentication, a crisis-aware conversational
endpoint backed by an external language model, and mood/progress tracking.

IMPORTANT: The chat path is safety-critical. Every inbound message is
screened for crisis language before any model call is made.
"""

__version__ = "0.1.0"
__author__ = "MindSync Engineering Team"
