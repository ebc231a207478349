from .stats import format_history, format_summary, summarize_history

__all__ = ["format_history", "format_summary", "summarize_history"]
