"""Shared API constants."""

# Vector size of job_chunks.embedding (match migration 001)
EMBEDDING_DIM = 768

# Public message for search failures; internals stay in the log
SEARCH_FAILED_MESSAGE = "Could not process search query. Please try again later."
