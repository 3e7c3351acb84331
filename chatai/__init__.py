"""
Chat AI

Terminal chat client for Google's generative-language API with a locally
persisted conversation and API key.
"""

__version__ = "0.1.0"
