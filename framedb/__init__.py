"""
Top-level package for the bicycle frame geometry index.

This package fetches frame geometry records from a remote API, arranges
them in a brand/model/size/year selection tree, normalizes each frame's
geometry into ratios scored against the whole population, and ranks
frames by similarity to a reference.  There are no side-effects on
import; the entry point is :class:`framedb.index.FrameIndex`.
"""
from __future__ import annotations
