"""
Unit Tests for stockfish_client

This package contains unit tests for all client components.

Running Tests:
    # Run all tests
    pytest tests/

    # Run specific test file
    pytest tests/test_stockfish.py

    # Run with coverage
    pytest tests/ --cov=stockfish_client --cov-report=html

    # Run specific test
    pytest tests/test_stockfish.py::TestShutdown::test_close_after_failed_send

Integration tests in test_stockfish_integration.py need a `stockfish`
binary on PATH and are skipped otherwise.

Dependencies:
    - pytest: Test framework
    - pytest-cov: Coverage reporting
"""
