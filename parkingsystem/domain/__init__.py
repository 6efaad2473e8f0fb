"""Domain layer: parking entities and fare rules"""
