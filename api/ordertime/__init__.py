"""
OrderTime inventory integration.

Shared pieces for the /api/ordertime/* serverless functions:
config, HTTP client, CSV parser, field normalizer and the
inventory join used by the live endpoint.
"""
