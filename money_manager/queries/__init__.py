"""Query and aggregation package."""

from money_manager.queries.projection import LedgerQuery, project
from money_manager.queries.summary import breakdown_by_sub_category, summarize

__all__ = ["LedgerQuery", "breakdown_by_sub_category", "project", "summarize"]
