"""Managers for Family Economy integration.

- FamilyEconomyManager: aggregate root over the family state (pure Python)
- RecoveryManager: parent gate recovery codes delivered by notify services
"""

from .family_manager import FamilyEconomyManager
from .recovery_manager import RecoveryManager

__all__ = ["FamilyEconomyManager", "RecoveryManager"]
