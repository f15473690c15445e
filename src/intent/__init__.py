"""
Intent analysis of diff hunks.

Hunks are grouped, refined and split by an external, untrusted classification engine.
Every engine result is decoded and validated strictly before it is returned or cached.
"""

from intent.intent_analyzer import IntentAnalyzer
from intent.intent_codex_engine import CodexEngine
from intent.intent_decoder import (
    decode_analysis,
    decode_groups,
    decode_split_plans,
    load_json_object,
)
from intent.intent_engine import EngineOutput, EngineRequest, IntentEngine
from intent.intent_exceptions import (
    EmptyInputError,
    EngineError,
    IntentError,
    IntentValidationError,
    SchemaError,
)
from intent.intent_hunk_splitter import IntentHunkSplitter
from intent.intent_refiner import IntentRefiner
from intent.intent_types import (
    ANALYSIS_VERSION,
    AnalysisResponse,
    AnalysisResult,
    GroupCategory,
    GroupRisk,
    IntentGroup,
    RefineResponse,
    RefineTarget,
    SplitPlan,
    SplitRange,
    SplitResponse,
)
from intent.intent_validator import (
    CoverageReport,
    check_coverage,
    validate_analysis,
    validate_refinement,
)

__all__ = [
    # Exceptions
    'EmptyInputError',
    'EngineError',
    'IntentError',
    'IntentValidationError',
    'SchemaError',
    # Types
    'ANALYSIS_VERSION',
    'AnalysisResponse',
    'AnalysisResult',
    'GroupCategory',
    'GroupRisk',
    'IntentGroup',
    'RefineResponse',
    'RefineTarget',
    'SplitPlan',
    'SplitRange',
    'SplitResponse',
    # Engines
    'CodexEngine',
    'EngineOutput',
    'EngineRequest',
    'IntentEngine',
    # Decoding and validation
    'CoverageReport',
    'check_coverage',
    'decode_analysis',
    'decode_groups',
    'decode_split_plans',
    'load_json_object',
    'validate_analysis',
    'validate_refinement',
    # Orchestrators
    'IntentAnalyzer',
    'IntentHunkSplitter',
    'IntentRefiner',
]
