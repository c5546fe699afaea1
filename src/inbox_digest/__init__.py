"""Unread mail aggregation with cached two-tier summaries."""
