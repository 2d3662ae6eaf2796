from burstscan.models.report import AnalysisReport, SkippedUnit
from burstscan.models.request import AnalysisRequest, TableAnalysisRequest

__all__ = ["AnalysisReport", "SkippedUnit", "AnalysisRequest", "TableAnalysisRequest"]
