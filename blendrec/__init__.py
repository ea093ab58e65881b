"""BlendRec: blended product recommendations for e-commerce.

This package scores products for users and anonymous sessions by blending
collaborative filtering, content-based affinity and trending popularity, and
records click/purchase feedback against the recommendations it stored.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: scorers, aggregation engine, feedback and store adapters
"""

__version__ = "0.1.0"
