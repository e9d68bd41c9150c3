from checkx_core.storage.analysis_store import AnalysisStore, InMemoryAnalysisStore, StoredAnalysis

__all__ = ["AnalysisStore", "InMemoryAnalysisStore", "StoredAnalysis"]
