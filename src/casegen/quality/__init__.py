"""Quality loop components: manifest-only verification and focused entity repair."""

from casegen.quality.entity_types import EntityType, classify_entity_id
from casegen.quality.models import RepairResult, VerificationResult
from casegen.quality.oracle import LangChainOracle, Oracle, OracleError, ScriptedOracle
from casegen.quality.repairer import EntityRepairer
from casegen.quality.verifier import QualityVerifier

__all__ = [
    "EntityRepairer",
    "EntityType",
    "LangChainOracle",
    "Oracle",
    "OracleError",
    "QualityVerifier",
    "RepairResult",
    "ScriptedOracle",
    "VerificationResult",
    "classify_entity_id",
]
