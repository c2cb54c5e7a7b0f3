from threat_lens.models.requests import AnalyzeRequest, ReportRequest

__all__ = ["AnalyzeRequest", "ReportRequest"]
