"""
Safety services: crisis screening and crisis resources.
"""

from mindsync.services.safety.crisis_detector import CrisisDetectionResult, CrisisDetector
from mindsync.services.safety.crisis_resources import (
    CrisisResource,
    ResourceBundle,
    ResourceCatalog,
)

__all__ = [
    "CrisisDetector",
    "CrisisDetectionResult",
    "CrisisResource",
    "ResourceBundle",
    "ResourceCatalog",
]
