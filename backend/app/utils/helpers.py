"""
Utility helper functions
"""
import re
from datetime import datetime
from typing import Optional


def format_date(date: Optional[datetime], format_str: str = "%d/%m/%Y") -> Optional[str]:
    """Format datetime object (Indian day-first by default)"""
    if not date:
        return None
    return date.strftime(format_str)


def slugify(text: str) -> str:
    """Convert text to URL-friendly slug"""
    text = text.lower()
    text = re.sub(r'[^\w\s.-]', '', text)
    text = re.sub(r'[-\s]+', '-', text)
    return text.strip('-')


def format_retry_after(seconds: int) -> str:
    """Human-readable wait, e.g. '5 hours' or '12 minutes'"""
    seconds = max(int(seconds), 0)
    if seconds >= 3600:
        hours = -(-seconds // 3600)
        return f"{hours} hour{'s' if hours != 1 else ''}"
    minutes = max(-(-seconds // 60), 1)
    return f"{minutes} minute{'s' if minutes != 1 else ''}"
