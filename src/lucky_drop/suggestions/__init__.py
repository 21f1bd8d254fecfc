"""
Suggestions Module

Gift ideas from web search plus a language model, and thank-you notes.
"""

from lucky_drop.suggestions.gift_ideas import GiftSuggestionService
from lucky_drop.suggestions.thank_you import ThankYouService

__all__ = [
    "GiftSuggestionService",
    "ThankYouService",
]
