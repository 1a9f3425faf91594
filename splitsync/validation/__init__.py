"""Input validation package."""

from splitsync.validation.inputs import clean_text, parse_amount, parse_category

__all__ = ["clean_text", "parse_amount", "parse_category"]
