"""Presentation layer: operator console"""
