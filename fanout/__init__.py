"""fanout: bounded-concurrency request dispatcher with retries and backoff."""
