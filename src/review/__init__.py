"""Stateful review of one pull request at a time."""

from review.request_epoch import RequestEpoch
from review.review_session import ReviewSession, ReviewSessionEvent
from review.review_settings import ReviewSettings

__all__ = [
    'RequestEpoch',
    'ReviewSession',
    'ReviewSessionEvent',
    'ReviewSettings',
]
