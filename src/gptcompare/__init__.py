"""
gptcompare package.

Provides:
- Request shaping and response normalization for the OpenAI Responses API
- HTTP relay via httpx + FastAPI
- Command-line client with side-by-side model comparison
"""
