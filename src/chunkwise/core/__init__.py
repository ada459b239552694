"""Core chunking, resilience, scheduling and summarization for chunkwise."""
