"""
Sentiment inference backends package.

This package contains the backends the orchestrator walks in order: the
accelerated and CPU neural backends, and the keyword backend that always
answers. All of them implement the common SentimentBackend interface.
"""
