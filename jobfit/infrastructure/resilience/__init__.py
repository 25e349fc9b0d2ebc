"""API Resilience Implementations.

Contains the backoff executor used to retry transient provider failures and
the classifier that maps provider errors onto the domain error taxonomy.
Bounded Context: API Resilience
"""
