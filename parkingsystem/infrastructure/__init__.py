"""Infrastructure layer: persistence and messaging"""
