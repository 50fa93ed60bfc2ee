"""
mlb-carousel: fetches a day's MLB schedule and downloads game recap thumbnails
concurrently, exposing progress through an observable network state.
"""

__version__ = "0.1.0"
