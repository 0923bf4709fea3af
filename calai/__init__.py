"""
CalAI meal photo analysis.

Turns a photo of a meal into a structured nutritional breakdown by asking a
multimodal chat-completion model and parsing its answer.

Structure:
- domain/: Analysis pipeline steps, food records, history queries
- infrastructure/: HTTP client, record store, configuration
- application/: Services and the analysis coordinator
- scripts/: Command line entry points
- tests/: Test suite
"""

__version__ = "1.0.0"
