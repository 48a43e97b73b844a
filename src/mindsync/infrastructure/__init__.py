"""
Infrastructure adapters: database, language model providers, metrics, monitoring.
"""
