"""Unit tests: components in isolation, collaborators mocked"""
