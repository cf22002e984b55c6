"""Crowny balanced-ternary task protocol client.

Every operation resolves to one of three outcomes (Success, Pending,
Failed). Multi-source calls are settled by ternary majority vote.
"""

from crowny.client import CrownyClient
from crowny.config import ClientConfig
from crowny.header import ProtocolHeader
from crowny.local import LocalInterpreter
from crowny.schemas import AppTask, ConsensusResult, TaskResult, TaskType
from crowny.trit import Trit, consensus

__version__ = "0.1.0"

__all__ = [
    "AppTask",
    "ClientConfig",
    "ConsensusResult",
    "CrownyClient",
    "LocalInterpreter",
    "ProtocolHeader",
    "TaskResult",
    "TaskType",
    "Trit",
    "consensus",
]
