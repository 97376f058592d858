"""
Test suite for the manifest analyzer.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_manifest_analysis_service.py -v
"""
