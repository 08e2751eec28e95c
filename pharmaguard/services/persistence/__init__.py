from .analysis_store import AnalysisStore, JsonlAnalysisStore, NullAnalysisStore, build_analysis_document

__all__ = [
    "AnalysisStore",
    "JsonlAnalysisStore",
    "NullAnalysisStore",
    "build_analysis_document",
]
