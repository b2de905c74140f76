"""Engine modules for Family Economy integration.

Contains pure computation engines:
- chore_engine: Chore transitions and streak math
- job_engine: Unlock evaluation, completion accounting, approvals, resets
- template_engine: Prototypes and fan-out to users
- economy_engine: Balance movements and ledger entries
- pattern_gate: Secret gesture setup/verify state machine
"""

from .chore_engine import ChoreEngine
from .economy_engine import EconomyEngine, InsufficientFundsError
from .job_engine import JobEngine
from .pattern_gate import GateResult, PatternGate
from .template_engine import TemplateEngine

__all__ = [
    "ChoreEngine",
    "EconomyEngine",
    "GateResult",
    "InsufficientFundsError",
    "JobEngine",
    "PatternGate",
    "TemplateEngine",
]
