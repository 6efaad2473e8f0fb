"""Integration tests: parking flows over a real SQLite database"""
