"""
Infinite Context chat service.

Provides:
- Word-count chunking of long inputs into per-chunk prompts
- Sequential Gemini generation with rate-limit aware early stop
- FastAPI endpoint that answers plain or chunked ("infinite") chat requests
"""
