# Agents module
from .analysis_engine import AnalysisEngine, AnalysisResult, DEFAULT_SCORE, MAX_IMAGES, SCORE_TOOL_NAME
from .content_fetcher import ContentFetcher, FetchedContent, extract_image_urls
from .events import Citation, Grounding, ModelEvent, Other, TextChunk, ToolCall

__all__ = [
    'AnalysisEngine', 'AnalysisResult', 'DEFAULT_SCORE', 'MAX_IMAGES', 'SCORE_TOOL_NAME',
    'ContentFetcher', 'FetchedContent', 'extract_image_urls',
    'Citation', 'Grounding', 'ModelEvent', 'Other', 'TextChunk', 'ToolCall',
]
