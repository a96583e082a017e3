from .client import ImageAnalysis, OpenAIClient, parse_analysis

__all__ = ["ImageAnalysis", "OpenAIClient", "parse_analysis"]
