"""SafeMind services.

- classifier_service: adapters for the external content classifiers
- analysis_service: risk aggregation engine and its HTTP boundary
"""
