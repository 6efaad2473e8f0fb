"""Application layer: entry and exit use cases"""
