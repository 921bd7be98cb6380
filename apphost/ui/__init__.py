"""
Qt (PySide6) platform adapter.
"""
