"""Recommendation core for BlendRec.

This module contains the candidate scorers (collaborative, content-based,
trending and product similarity), the engine that merges and persists their
output, the feedback recorder, and the store/cache adapters they read from.
"""
