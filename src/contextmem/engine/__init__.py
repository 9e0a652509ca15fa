"""Engine domain — signal extraction, prioritization and learning."""

from contextmem.engine.extraction import analyze_sentiment
from contextmem.engine.extraction import build_memory_draft
from contextmem.engine.extraction import calculate_importance
from contextmem.engine.extraction import extract_entity_mentions
from contextmem.engine.extraction import extract_signals
from contextmem.engine.extraction import extract_topics
from contextmem.engine.extraction import KeywordSignalExtractor
from contextmem.engine.extraction import SignalExtractor
from contextmem.engine.learning import LearnedPattern
from contextmem.engine.learning import MemoryConsumer
from contextmem.engine.learning import TopicWorkflowLearner
from contextmem.engine.prioritization import ContextPrioritizer
from contextmem.engine.prioritization import extract_keywords
from contextmem.engine.prioritization import PriorityScore
from contextmem.engine.schemas import DomainContext
from contextmem.engine.schemas import EntityMention
from contextmem.engine.schemas import ExtractedSignals
from contextmem.engine.schemas import NamedRecord
from contextmem.engine.schemas import SentimentAnalysis
from contextmem.engine.schemas import TopicExtraction

__all__ = [
    "ContextPrioritizer",
    "DomainContext",
    "EntityMention",
    "ExtractedSignals",
    "KeywordSignalExtractor",
    "LearnedPattern",
    "MemoryConsumer",
    "NamedRecord",
    "PriorityScore",
    "SentimentAnalysis",
    "SignalExtractor",
    "TopicExtraction",
    "TopicWorkflowLearner",
    "analyze_sentiment",
    "build_memory_draft",
    "calculate_importance",
    "extract_entity_mentions",
    "extract_keywords",
    "extract_signals",
    "extract_topics",
]
