"""
Unit and integration tests for the European Soccer season pipeline

Test Structure:
- Each test creates its own temporary DuckDB database with the source schema
- Sample data is hand-built and minimal so expected values can be worked out by hand
- Stage tests call one pipeline method; integration tests run the full pipeline
"""
