"""Tests for Parking System"""
