"""Broker positioning fetchers."""

from .dukascopy import DukascopyHeadlessSource, DukascopySource
from .fxssi import FxssiHeadlessSource, FxssiSource
from .headless import HeadlessSentimentSource
from .http import HttpSentimentSource
from .myfxbook import MyFxBookHeadlessSource, MyFxBookSource

__all__ = [
    "HttpSentimentSource",
    "HeadlessSentimentSource",
    "MyFxBookSource",
    "MyFxBookHeadlessSource",
    "DukascopySource",
    "DukascopyHeadlessSource",
    "FxssiSource",
    "FxssiHeadlessSource",
]
