"""Core signal logic: indicators, models, classifier and lifecycle tracker.

This package contains pure business logic with no I/O dependencies
(no network access, no persistence). Market data is passed in as
snapshots and notifications go through an injected sink.
"""
