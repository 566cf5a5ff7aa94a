"""
Performance monitoring and Prometheus metrics for the sentiment runtime.
"""
