"""Models domain — MCP tool input and output contracts."""

from contextmem.models.schemas import ClearMemoryResult
from contextmem.models.schemas import ContextEntryView
from contextmem.models.schemas import ExportMemoryResult
from contextmem.models.schemas import ImportMemoryResult
from contextmem.models.schemas import IndexRecordsInput
from contextmem.models.schemas import IndexRecordsResult
from contextmem.models.schemas import QueryRecordsInput
from contextmem.models.schemas import QueryRecordsResult
from contextmem.models.schemas import RecordTurnInput
from contextmem.models.schemas import RecordTurnResult
from contextmem.models.schemas import RelevantContextInput
from contextmem.models.schemas import RelevantContextResult
from contextmem.models.schemas import SearchMemoryInput
from contextmem.models.schemas import SearchMemoryResult
from contextmem.models.schemas import ToolResult
from contextmem.models.schemas import TopPatternsInput
from contextmem.models.schemas import TopPatternsResult

__all__ = [
    "ClearMemoryResult",
    "ContextEntryView",
    "ExportMemoryResult",
    "ImportMemoryResult",
    "IndexRecordsInput",
    "IndexRecordsResult",
    "QueryRecordsInput",
    "QueryRecordsResult",
    "RecordTurnInput",
    "RecordTurnResult",
    "RelevantContextInput",
    "RelevantContextResult",
    "SearchMemoryInput",
    "SearchMemoryResult",
    "ToolResult",
    "TopPatternsInput",
    "TopPatternsResult",
]
