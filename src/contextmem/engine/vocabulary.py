"""Closed keyword vocabulary shared by extraction and prioritization.

Every list is bilingual (English and Vietnamese) and matched as a
lowercase substring of the text under analysis.  Table order matters:
topic ties resolve to the earlier category.
"""

from __future__ import annotations

from types import MappingProxyType

ENTITY_KEYWORDS = MappingProxyType(
    {
        "task": (
            "task",
            "tác vụ",
            "công việc",
            "nhiệm vụ",
            "todo",
            "assignment",
            "project",
            "dự án",
            "work",
            "job",
            "activity",
        ),
        "client": (
            "client",
            "khách hàng",
            "customer",
            "khách",
            "company",
            "công ty",
            "business",
            "partner",
            "đối tác",
        ),
        "quote": (
            "quote",
            "báo giá",
            "estimate",
            "proposal",
            "đề xuất",
            "tính giá",
            "pricing",
            "cost",
            "chi phí",
        ),
    }
)

TOPIC_KEYWORDS = MappingProxyType(
    {
        "task_management": (
            "task",
            "tác vụ",
            "công việc",
            "todo",
            "assignment",
            "complete",
            "finish",
            "hoàn thành",
        ),
        "client_relations": (
            "client",
            "khách hàng",
            "customer",
            "meeting",
            "call",
            "email",
            "communication",
        ),
        "project_planning": (
            "project",
            "dự án",
            "plan",
            "kế hoạch",
            "timeline",
            "deadline",
            "schedule",
        ),
        "financial": (
            "quote",
            "báo giá",
            "money",
            "tiền",
            "cost",
            "chi phí",
            "budget",
            "ngân sách",
            "payment",
            "thanh toán",
        ),
        "collaboration": (
            "team",
            "nhóm",
            "collaborate",
            "hợp tác",
            "share",
            "chia sẻ",
            "work together",
        ),
        "productivity": (
            "efficiency",
            "hiệu quả",
            "optimize",
            "tối ưu",
            "improve",
            "cải thiện",
            "workflow",
        ),
        "reporting": (
            "report",
            "báo cáo",
            "status",
            "trạng thái",
            "progress",
            "tiến độ",
            "overview",
            "summary",
        ),
        "scheduling": (
            "calendar",
            "lịch",
            "schedule",
            "time",
            "thời gian",
            "appointment",
            "meeting",
            "cuộc họp",
        ),
    }
)

DEFAULT_TOPIC = "general"

POSITIVE_INDICATORS = (
    "great",
    "good",
    "excellent",
    "perfect",
    "awesome",
    "fantastic",
    "wonderful",
    "tuyệt vời",
    "tốt",
    "hoàn hảo",
    "xuất sắc",
    "thanks",
    "thank you",
    "cảm ơn",
    "success",
    "thành công",
    "complete",
    "hoàn thành",
    "done",
    "xong",
)

NEGATIVE_INDICATORS = (
    "bad",
    "terrible",
    "awful",
    "wrong",
    "error",
    "problem",
    "issue",
    "tệ",
    "sai",
    "lỗi",
    "vấn đề",
    "khó khăn",
    "trouble",
    "difficult",
    "fail",
    "thất bại",
    "cannot",
    "không thể",
    "impossible",
    "bất khả thi",
)

NEUTRAL_INDICATORS = (
    "okay",
    "ok",
    "fine",
    "normal",
    "regular",
    "standard",
    "average",
    "được",
    "bình thường",
    "thông thường",
    "maybe",
    "perhaps",
    "có thể",
)

URGENCY_KEYWORDS = (
    "urgent",
    "khẩn cấp",
    "important",
    "quan trọng",
    "critical",
    "deadline",
    "error",
    "lỗi",
    "problem",
    "vấn đề",
    "help",
    "giúp",
)

STOPWORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "up", "about", "into", "through",
        "during", "before", "after", "above", "below", "between", "among",
        "is", "are", "was", "were", "be", "been", "have", "has", "had",
        "do", "does", "did", "will", "would", "could", "should", "may",
        "might", "must", "can", "this", "that", "these", "those", "i",
        "you", "he", "she", "it", "we", "they", "me", "him", "her", "us",
        "them",
    }
)


def matching_keywords(text: str, keywords: tuple[str, ...]) -> list[str]:
    """Return the keywords occurring in an already-lowercased *text*."""
    return [keyword for keyword in keywords if keyword in text]


def detect_topics(text: str) -> list[str]:
    """Return every topic with at least one keyword hit, in table order.

    Falls back to ``["general"]`` when nothing matches.
    """
    lowered = text.lower()
    topics = [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if matching_keywords(lowered, keywords)
    ]
    return topics or [DEFAULT_TOPIC]
