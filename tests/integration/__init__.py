"""
Integration Tests Package

Service-level behaviour across the delegate boundary, and the HTTP and
CLI surfaces on top of it.

TEST AXIOMS:
=============
1. Nothing raises through the service: failures come back as data
2. Fallback is explicit: traced and logged, never silent
3. Every surface answers exactly what the service answers
"""
